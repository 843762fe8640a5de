"""
Shared service utilities.

- http.py - requests session with retry, default timeout and the TLS
  settings the DWD open-data host needs
"""
