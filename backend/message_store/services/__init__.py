# Services package init
"""
Message Store Backend - Services Layer
======================================

What:  Repository operations sitting between routes (HTTP) and MongoDB.

Service Inventory:
    - MessageService: list, get, insert, replace and delete messages
"""
