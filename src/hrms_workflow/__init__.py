"""HRMS workflow package.

Organized by feature modules (attendance, leaves, users, reports) with a thin
Flask controller layer over service/repository layers.
"""
