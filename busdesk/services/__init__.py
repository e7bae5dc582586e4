# busdesk/services/__init__.py
"""
Service layer root package.

- base: ServiceResult and BaseService shared by every service
- booking: the booking lifecycle engine
"""
