"""
dhcpreserve - DHCP reservation automation

Turns the active lease of an address into a persistent reservation on a
remote DHCP server, or removes an existing reservation.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

__version__ = "0.1.0"
__author__ = "DNS Science.io"
__copyright__ = "Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company"
