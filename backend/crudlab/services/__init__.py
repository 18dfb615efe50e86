"""
CrudLab Backend — Services Layer
=================================

What:  Business logic between the routes (HTTP) and the database.

Service Inventory:
    - UserService:     account controllers (register, password, profile, images)
    - TodoService:     todos and sub-todos of the current user
    - OrderService:    orders and order item status
    - HospitalService: patients and medical records
    - FileService:     upload validation and temp storage
    - MediaService:    Cloudinary uploads with retry and circuit breaker
    - security:        bcrypt password hashing
    - pagination:      shared cursor pagination
"""
