"""
Core: ошибки, авторизация, доменные модели, арифметика распределения и контракты.

Не зависит от конкретных компонентов (sale, settlement, escrow).
"""
