"""
Chat connectors.

- matrix_client.py: nio client creation + session persistence
- matrix_connector.py: Matrix command loop, messenger and reminder notifier
- console_connector.py: local REPL and console reminder notifier
"""
