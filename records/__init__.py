"""Records application for the SmartQR emergency health backend.

This package contains the tenant, user and patient models, the services
that apply role and tenant rules to them, and the API routes the
front-end and the public QR lookup talk to.
"""
