"""
Prometheus registry and the cart-domain counters.

Under gunicorn every worker writes to PROMETHEUS_MULTIPROC_DIR and the scrape
aggregates them; metrics must then be created unregistered.
"""
import os

from prometheus_client import Counter, CollectorRegistry, REGISTRY, multiprocess

if os.environ.get('PROMETHEUS_MULTIPROC_DIR'):
    registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(registry)
    register_in = None
else:
    registry = REGISTRY
    register_in = REGISTRY

cart_discount_auto_detached_total = Counter(
    'pos_cart_discount_auto_detached_total',
    'Discounts removed from a cart on read because they stopped being valid',
    ['reason'],
    registry=register_in
)

cart_discount_rejected_total = Counter(
    'pos_cart_discount_rejected_total',
    'Discount attach attempts refused by validation',
    registry=register_in
)
