"""kpt package (Kptfile) domain for kptedit.

This module provides:
- Typed Kptfile records: Condition, ReadinessGate, Function
- Kptfile: field editing helpers over the Kptfile object
- KptPackage: the package's files, keyed by relative path
"""
