"""
auth — User authentication module.

Provides:
  • Signed token creation & verification (``TokenService``)
  • Password hashing (bcrypt)
  • Register / Login / Profile API routes
  • ``get_current_user_id`` FastAPI dependency
"""
