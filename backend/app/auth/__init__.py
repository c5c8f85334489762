"""Authentication module (username/password accounts with bearer tokens).

Services:
    - UserService: CRUD over the users table.
    - hash_password / verify_password: passlib password hashing.
    - create_access_token / decode_access_token: PyJWT bearer tokens.

Dependencies:
    - get_optional_user: resolves the caller, None for guests.
    - require_user: same, but rejects guests with 401.
"""
