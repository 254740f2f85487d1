"""Appointments domain - booking, status changes, search and waitlist"""
