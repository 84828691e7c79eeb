"""
WordShelf Backend: Services Layer
==================================

What:  Everything between the HTTP routes and the record stores that is not
       the page state machine itself.

Service Inventory:
    - validation:    form normalisation and required-field checks
    - blob_service:  BlobStorage backends and the ImageUploader
    - catalog:       builds stores and uploaders from settings (one Catalog
                     per running app, handed to routes via app.state)
"""
