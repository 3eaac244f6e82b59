"""
Message Store Backend - API Routes Package
==========================================

Route Inventory:
    - messages.py: GET    /messages          (list all messages)
                   GET    /messages/{id}     (get one message)
                   POST   /messages          (store a message, returns its id)
                   PATCH  /messages/{id}     (replace a message)
                   DELETE /messages/{id}     (delete a message, returns it)
    - health.py:   GET    /health            (store connectivity check)

Routes stay thin: read the request, call one service method, return the result.
"""
