"""Payments domain - charges, refunds and receipts"""
