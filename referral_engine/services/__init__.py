"""Бизнес-логика реферальной программы."""
