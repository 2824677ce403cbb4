from .catalog import Store, Product, Supplier, ExchangeRate
from .inventory import Unit
from .documents import Transfer, TransferLine
from .sales import Sale, SaleLine
from .auth import Employee, SessionToken
from .purchasing import PurchaseOrder, PurchaseOrderItem, PurchaseOrderPayment
from .settings import ReceiptSettings

__all__ = [
    'Store', 'Product', 'Supplier', 'ExchangeRate',
    'Unit',
    'Transfer', 'TransferLine',
    'Sale', 'SaleLine',
    'Employee', 'SessionToken',
    'PurchaseOrder', 'PurchaseOrderItem', 'PurchaseOrderPayment',
    'ReceiptSettings',
]
