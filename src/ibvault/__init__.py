"""
Independence Branch Result Vault (ibvault)

Deterministic scoring of the "Civic Foundations" questionnaire and
self-verifying PNG result images.

LAYERS:
-------
    questionnaire / catalog   fixed question set and sentence banks
    classifier                answers -> analysis (pure)
    payload                   canonical payload, checksum, transport encoding
    pngmeta                   PNG chunk walk, tEXt insert/extract (bytes only)
    verification              extract -> validate -> recompute -> compare

Verification proves internal consistency of an embedded result.
It does NOT identify who produced it.
"""

__version__ = "0.1.0"
