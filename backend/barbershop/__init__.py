"""Barbershop booking backend: slot generation, availability and booking policy."""
