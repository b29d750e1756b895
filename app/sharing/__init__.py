"""
Secure share links for files.

Owners create revocable, optionally expiring and access-limited links to
a single file. Anonymous holders of the link token can view (and, where
permitted, download) the file. Every access is audited, recipients can
be notified by email, and periodic maintenance sweeps dead links and
reports usage.
"""
