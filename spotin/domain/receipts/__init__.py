"""Receipts domain - Receipt history and cancellations"""
