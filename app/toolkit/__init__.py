"""
Toolkit - Domain-facing collaborators.

This app provides the outbound integrations the sharing subsystem calls into:
- EmailService: Outbound email through Django's mail backends
- Protocols: EmailSender and FileStore interfaces

Usage:
    from toolkit.services.email import EmailService
    from toolkit.protocols import EmailSender, FileStore

Note:
    - This app has no models.
    - For generic infrastructure (clock, errors, request helpers), see core/
"""
