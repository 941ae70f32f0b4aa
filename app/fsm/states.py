UNAPPLIED = "unapplied"
VALIDATING = "validating"
APPLIED = "applied"
REJECTED = "rejected"
REDEEMED = "redeemed"

TRANSITIONS: dict[str, frozenset[str]] = {
    UNAPPLIED: frozenset({VALIDATING}),
    VALIDATING: frozenset({APPLIED, REJECTED}),
    APPLIED: frozenset({REDEEMED, UNAPPLIED}),
    REJECTED: frozenset({VALIDATING}),
    REDEEMED: frozenset(),
}
