"""Relayer protocol constants.

Centralizes chained reference prefixes, reserved keys and vault limits.
"""

# Chained reference prefixes (top 16 bits of the 256-bit reference)
# Temporary references are cleared by the relayer when read
CHAINED_REFERENCE_TEMP_PREFIX = 0xBA10
CHAINED_REFERENCE_READONLY_PREFIX = 0xBA11
CHAINED_REFERENCE_PREFIX_SHIFT = 240

# Key prefixes for per-slot references ("10<i>" for exits, "20<i>" for swaps)
EXIT_REFERENCE_KEY_PREFIX = "10"
SWAP_REFERENCE_KEY_PREFIX = "20"

# Reserved key for the BPT minted by the join
JOIN_REFERENCE_KEY = "999"

# Largest int256, used for unbounded vault limits
MAX_INT256 = 2**255 - 1

# Vault userData kinds
EXACT_BPT_IN_FOR_ONE_TOKEN_OUT = 0
EXACT_BPT_IN_FOR_TOKENS_OUT = 1
# ComposableStable renumbered the proportional exit
COMPOSABLE_EXACT_BPT_IN_FOR_ALL_TOKENS_OUT = 2
EXACT_TOKENS_IN_FOR_BPT_OUT = 1

# Relayer pool kind and batch swap kind
POOL_KIND_WEIGHTED = 0
SWAP_KIND_GIVEN_IN = 0

# Exit token index used by pools that cannot exit proportionally
COMPOSABLE_V1_EXIT_TOKEN_INDEX = 0

# Denominator for parts-per-million buffers (1 ppm = 0.0001%)
PPM = 1_000_000
