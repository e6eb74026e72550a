"""Feedback domain - Member satisfaction ratings"""
