#!/usr/bin/env python3
"""
Listing Premium Payments - Entry Point
Точка входа HTTP-сервиса верификации платежей
"""

from premium_payments.main import main
import asyncio

if __name__ == "__main__":
    asyncio.run(main())
