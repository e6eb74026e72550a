"""Finance domain - Expenses and financial reports"""
