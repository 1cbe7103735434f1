"""qTest integration modules.

Split into:
  - api.py  : all HTTP calls to qTest (transport + listing helpers)
  - auth.py : bearer / OAuth password-grant token handling
  - types.py: small shared data structures

Traversal, mirroring and status updates live in pipeline/ and only use the
``get``/``post`` surface of :class:`tools.qtest.api.QTestClient`.
"""
