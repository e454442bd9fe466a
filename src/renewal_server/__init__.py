"""renewal_server — FastAPI REST API for the license renewal workflow.

Run with::

    uv run renewal-server
    # or
    uvicorn renewal_server.app:app --host 0.0.0.0 --port 8080
"""
