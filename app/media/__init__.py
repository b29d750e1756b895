"""
Media app for uploaded files.

This app provides:
- MediaFile model for storing user-uploaded files
- MediaFileStore, the file store that share links read from
- FileDeliveryService for streaming file content
"""
