"""Scheduled jobs shared by the worker and the API"""
