"""
Query API Package.

Read-only HTTP access to the persisted ticker and candle series.

Run standalone:
    uvicorn query_api.api:app --port 8080
"""
