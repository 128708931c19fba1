"""Infrastructure adapters"""
