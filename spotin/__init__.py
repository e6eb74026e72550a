"""Spotin coworking space backend"""
