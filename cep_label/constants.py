from __future__ import annotations

# ──────────────────────────────────────────────────────────────────────────────
# Sentinel returned by the lookup cache on a miss
# ──────────────────────────────────────────────────────────────────────────────
MISS: object = object()

# ──────────────────────────────────────────────────────────────────────────────
# Label palette and titles
# ──────────────────────────────────────────────────────────────────────────────
PRIMARY_COLOR = "#2563eb"
TEXT_COLOR = "#1f2937"
BORDER_COLOR = "#e5e7eb"
BANNER_TEXT_COLOR = "#ffffff"

SENDER_TITLE = "REMETENTE"
RECIPIENT_TITLE = "DESTINATÁRIO"
