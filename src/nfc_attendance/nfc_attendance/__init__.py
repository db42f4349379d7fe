"""NFC attendance station package.

Feature modules (cards, users, sessions, attendance, reports) each expose a
Protocol repository, a MySQL implementation and a service layer; Flask
controllers stay thin.
"""
