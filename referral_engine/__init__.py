"""Реферальный движок DataSense: коды, профили, агрегаты и статус Champion."""
