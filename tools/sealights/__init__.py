"""Sealights integration modules.

Split into:
  - token.py          : backend URL discovery from the agent token
  - clock.py          : /clock/sync server-time probe
  - recommendations.py: loading skip recommendations + name matching
"""
