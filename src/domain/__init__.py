"""
Domain layer for contact form delivery.

This layer contains:
- Data models (submission, delivery result)
- Error taxonomy (validation, configuration, delivery)
- Business logic (validate -> compose -> deliver pipeline)
"""
