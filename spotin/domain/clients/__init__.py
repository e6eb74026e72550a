"""Clients domain - Member registration and profiles"""
