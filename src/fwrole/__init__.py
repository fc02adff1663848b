"""
fwrole - Role-driven firewall resource agent.

Keeps firewall rules in lock-step with a node's Promoted/Unpromoted role
in a Pacemaker cluster, using nftables or iptables.
"""

__version__ = "1.0.0"
__author__ = "Server Management Team"
