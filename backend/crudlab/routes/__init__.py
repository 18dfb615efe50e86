"""
CrudLab Backend — API Routes Package
=====================================

Route Inventory:
    - health.py:   GET  /                     (readiness text)
                   GET  /health               (dependency health)
    - jokes.py:    GET  /api/jokes
    - users.py:    /api/v1/users/...          (account controllers)
    - todos.py:    /api/v1/todos/...
    - orders.py:   /api/v1/orders/...
    - hospital.py: /api/v1/patients/..., /api/v1/medical-records/...

Routes stay thin: read the request, call a service, wrap the result in
ApiResponse. Errors propagate as exceptions to the global handlers.
"""
