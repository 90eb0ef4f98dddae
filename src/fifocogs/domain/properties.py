"""Property keys, account names and defaults shared by the ledgers."""

# Book properties
INVENTORY_BOOK_PROP = "inventory_book"
EXC_CODE_PROP = "exc_code"

# Account properties
NEEDS_REBUILD_PROP = "needs_rebuild"
COGS_CALC_DATE_PROP = "cogs_calc_date"

# Record properties
ORDER_PROP = "order"
ORIGINAL_QUANTITY_PROP = "original_quantity"
TOTAL_COST_PROP = "total_cost"
GOOD_PURCHASE_COST_PROP = "good_purchase_cost"
PURCHASE_CODE_PROP = "purchase_code"
PURCHASE_INVOICE_PROP = "purchase_invoice"
LIQUIDATION_LOG_PROP = "liquidation_log"
ADD_COSTS_PROP = "additional_costs"
CREDIT_NOTE_PROP = "credit_note"
PARENT_ID_PROP = "parent_id"
PURCHASE_LOG_PROP = "purchase_log"
SALE_INVOICE_PROP = "sale_invoice"
SALE_AMOUNT_PROP = "sale_amount"
QUANTITY_SOLD_PROP = "quantity_sold"
QUANTITY_PROP = "quantity"
GOOD_PROP = "good"

COGS_HASHTAG = "#cost_of_sale"

# Accounts
GOOD_BUY_ACCOUNT_NAME = "Buy"
GOOD_SELL_ACCOUNT_NAME = "Sell"
COST_OF_SALES_ACCOUNT_NAME = "Cost of sales"

# Months searched before a purchase date for additional costs and credit notes
ADDITIONAL_COSTS_CREDITS_QUERY_RANGE = 2
