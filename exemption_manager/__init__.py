"""MCSB Exemption Manager.

Reconciles Azure Policy exemptions for tagged resources against the
Microsoft Cloud Security Benchmark baseline across a management-group
hierarchy, and audits baseline coverage of subscriptions.
"""

__version__ = "0.1.0"
__author__ = "Cloud Governance Team"
