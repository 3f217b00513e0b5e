"""
Utilities Package

Exported:
    binio: fixed-width binary read/write helpers shared by every persisted representation
"""
