"""
Wire payloads as sent by the marketplace API.

WHAT: Shared request constants and canned responses
WHY: Keep REST and socket payload shapes consistent across tests
HOW: Plain dicts mirroring the server's JSON
"""

API_URL = "http://test-api.local/api"
TOKEN = "test-token"

CREATED_WITH_COUNTER = {
    "negotiation": {"id": "s1", "status": "en_cours"},
    "botResponse": {
        "status": "countered",
        "message": "Je peux faire 45000",
        "proposedPrice": 45000,
    },
}

CREATED_WITHOUT_RESPONSE = {
    "success": True,
    "message": "Négociation créée avec succès",
    "data": {"_id": "s2", "status": "en_cours", "proposedPrice": 40000},
}
