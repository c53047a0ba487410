"""
REST API module for IntelBoard.

Provides FastAPI endpoints for:
- Authentication, companies and the user directory
- Requests, matching and the specialist workflow
- IT Flora landscapes and contract import
- AI profile extraction and the architecture designer
"""
