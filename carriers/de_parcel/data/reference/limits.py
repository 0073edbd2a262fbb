"""
Package Limits

Hard limits checked before any rule is consulted.

GIRTH
-----
Girth = length + 2 * width + 2 * height, computed on the package's own
length/width/height fields (before dimensions are sorted) in millimeters.
A package is rejected when girth > GIRTH_LIMIT_MM; exactly 3000 mm passes.

WEIGHT
------
MAX_WEIGHT_G is the heaviest tier in the default table. It is informational
(used by the calculator prompt); coverage is decided by the rules alone.
"""

GIRTH_LIMIT_MM = 3000         # 300 cm
MAX_WEIGHT_G = 31000          # 31 kg
