"""
Notion integration.

- parsing.py: property names (NotionSchema), row -> Task parsing, request payloads
- client.py: async HTTP client (TaskSource + create/update calls)
"""
