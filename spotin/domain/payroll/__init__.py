"""Payroll domain - Employees and salary payments"""
