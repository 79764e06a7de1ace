# Routers package — Thin Controllers (SRP / DIP)
from app.routers import alerts

__all__ = [
    "alerts",
]
