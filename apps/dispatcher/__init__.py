"""
Dispatcher App - Filter and Forward Users

Responsibilities:
- Fetch the user list from the source API (single GET, no retry)
- Keep users whose email ends with the configured suffix (default ".biz")
- Forward each match to the destination API with fixed-delay retries
- Log and skip per-record delivery failures; abort only when the fetch fails

Usage:
    DESTINATION_API_URL=https://example.test/users python -m apps.dispatcher
"""
