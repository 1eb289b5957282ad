# -*- coding: utf-8 -*-
"""jrn: a password-protected journal stored as one encrypted JSON file.

Modules:
    date:      Date value type (entry key) and its parser.
    errors:    Exception types for every expected failure.
    db:        Encrypted/stored journal shapes, base64 + JSON, file access.
    crypto:    Encryptor interface with Secure and ZeroSecurity variants.
    state:     Decrypted journal state with load/save.
    logic:     Config resolution and the API used by the UI.
    ui:        Textual-based UI (screens, modals, app).
    theme.css: Textual CSS theme (loaded by ui.py).
"""

__all__ = ["crypto", "date", "db", "errors", "logic", "state", "ui"]
