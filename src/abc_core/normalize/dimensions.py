"""Customer/product dimensions and the customer x product fact.

Derived from the canonical rows of one upload and stored next to the raw
tables, so that lookups by customer or product code do not need to rescan
whole sheets.

Grain Reference:
    - dim_customers: periodNo x customerId (from CustomerProfitResult)
    - dim_products: periodNo x productCode (from ProductProfitResult)
    - fact_customer_product: periodNo x customerId x productCode
      (from CustomerProductProfit, amounts summed)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd

from abc_core.normalize.dataset import NormalizedDataset
from abc_core.normalize.extractors import cell_text, extract_code, to_number
from abc_core.tables import TableKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DimCustomer:
    period_no: int
    customer_id: str
    customer_name: str
    company: str
    bu_code: str

    @property
    def key(self) -> str:
        return f"{self.period_no}:{self.customer_id}"


@dataclass(frozen=True)
class DimProduct:
    period_no: int
    product_code: str
    product_name: str
    company: str
    bu_code: str

    @property
    def key(self) -> str:
        return f"{self.period_no}:{self.product_code}"


@dataclass(frozen=True)
class FactCustomerProduct:
    period_no: int
    customer_id: str
    product_code: str
    sales_amount: float
    service_cost: float
    net_profit: float
    quantity: float

    @property
    def key(self) -> str:
        return f"{self.period_no}:{self.customer_id}:{self.product_code}"


@dataclass
class Dimensions:
    customers: list[DimCustomer]
    products: list[DimProduct]
    facts: list[FactCustomerProduct]


def _dim_customers(dataset: NormalizedDataset) -> list[DimCustomer]:
    seen: dict[tuple[int, str], DimCustomer] = {}
    for row in dataset.normalized_data[TableKind.CUSTOMER_PROFIT]:
        customer_id = row["customerId"]
        if not customer_id:
            continue
        key = (int(row["periodNo"]), customer_id)
        # first row wins, later duplicates only repeat the same customer
        seen.setdefault(
            key,
            DimCustomer(
                period_no=key[0],
                customer_id=customer_id,
                customer_name=cell_text(row.get("Customer")).strip(),
                company=row["company"],
                bu_code=row["buCode"],
            ),
        )
    return list(seen.values())


def _dim_products(dataset: NormalizedDataset) -> list[DimProduct]:
    seen: dict[tuple[int, str], DimProduct] = {}
    for row in dataset.normalized_data[TableKind.PRODUCT_PROFIT]:
        code = extract_code(row.get("ProductID"))
        if not code:
            continue
        key = (int(row["periodNo"]), code)
        seen.setdefault(
            key,
            DimProduct(
                period_no=key[0],
                product_code=code,
                product_name=cell_text(row.get("Product")).strip(),
                company=row["company"],
                bu_code=row["buCode"],
            ),
        )
    return list(seen.values())


def _fact_customer_product(dataset: NormalizedDataset) -> list[FactCustomerProduct]:
    rows = dataset.normalized_data[TableKind.CUSTOMER_PRODUCT_PROFIT]
    if not rows:
        return []

    df = pd.DataFrame(
        {
            "period_no": [int(r["periodNo"]) for r in rows],
            "customer_id": [r["customerId"] for r in rows],
            "product_code": [extract_code(r.get("Product")) for r in rows],
            "sales_amount": [to_number(r.get("Price")) for r in rows],
            "service_cost": [to_number(r.get("ServiceCost")) for r in rows],
            "net_profit": [to_number(r.get("NetProfit")) for r in rows],
            "quantity": [to_number(r.get("Quantity")) for r in rows],
        }
    )
    grouped = df.groupby(["period_no", "customer_id", "product_code"], sort=True, as_index=False).sum()
    return [
        FactCustomerProduct(
            period_no=int(rec["period_no"]),
            customer_id=str(rec["customer_id"]),
            product_code=str(rec["product_code"]),
            sales_amount=float(rec["sales_amount"]),
            service_cost=float(rec["service_cost"]),
            net_profit=float(rec["net_profit"]),
            quantity=float(rec["quantity"]),
        )
        for rec in grouped.to_dict(orient="records")
    ]


def build_dimensions(dataset: NormalizedDataset) -> Dimensions:
    """Derive customer/product dimensions and the customer x product fact."""
    dims = Dimensions(
        customers=_dim_customers(dataset),
        products=_dim_products(dataset),
        facts=_fact_customer_product(dataset),
    )
    logger.debug(
        "Built dimensions: %d customers, %d products, %d customer-product facts",
        len(dims.customers),
        len(dims.products),
        len(dims.facts),
    )
    return dims
