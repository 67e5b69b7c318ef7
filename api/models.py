"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
JSON keys are camelCase and identifiers are exposed as `_id`, matching the
wire format the back-office client already consumes.
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated, Any, Dict, Generic, List, Optional, TypeVar, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from domain.catalog import Brand, Category, Firm, Product
from domain.category_summary import (
    CategoryReport,
    CategorySummary,
    PartyAmount,
    ProductProfit,
    ProductRank,
)
from domain.ledger import Purchase, Sell, resolve_id
from domain.rollup import ProductAverage, RollupTotals, SellerTotal
from domain.users import User
from repositories.pagination import PageDetails
from services.sales_report_service import SalesReport

T = TypeVar("T")

# A user reference as sent by clients: a bare id or an embedded user object.
UserReference = Union[str, Dict[str, Any]]

CENT = Decimal("0.01")


def to_money(value: Decimal) -> Decimal:
    """Round a money amount to cents (half up) for the wire."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# Money leaves the API rounded to cents; averages are exact Decimals until here.
Money = Annotated[Decimal, AfterValidator(to_money)]


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Envelopes
# ============================================================================

class PagesOut(ApiModel):
    previous: Optional[int] = None
    current: int
    next: Optional[int] = None
    total: int


class PageDetailsOut(ApiModel):
    """Page window plus the filter/search/sort the list was asked for."""
    filter: Dict[str, str] = Field(default_factory=dict)
    search: Dict[str, str] = Field(default_factory=dict)
    sort: Dict[str, str] = Field(default_factory=dict)
    limit: int
    page: int
    skip: int
    total_records: int
    pages: PagesOut

    @classmethod
    def from_domain(cls, details: PageDetails) -> "PageDetailsOut":
        return cls(
            filter=dict(details.filters),
            search=dict(details.search),
            sort=dict(details.sort),
            limit=details.limit,
            page=details.page,
            skip=details.skip,
            total_records=details.total_records,
            pages=PagesOut(
                previous=details.previous,
                current=details.page,
                next=details.next,
                total=details.total_pages,
            ),
        )


class DataResponse(ApiModel, Generic[T]):
    """Success envelope: {"error": false, "data": ...}."""
    error: bool = False
    data: T


class ListResponse(ApiModel, Generic[T]):
    error: bool = False
    details: PageDetailsOut
    data: List[T]


class MessageResponse(ApiModel):
    error: bool = False
    message: str


class ErrorResponse(ApiModel):
    """Standard error envelope."""
    error: bool = True
    message: str

    model_config = ConfigDict(
        json_schema_extra={"example": {"error": True, "message": "Category not found"}}
    )


# ============================================================================
# Catalog
# ============================================================================

class CategoryOut(ApiModel):
    id: str = Field(alias="_id")
    name: str

    @classmethod
    def from_domain(cls, category: Category) -> "CategoryOut":
        return cls(id=category.category_id, name=category.name)


class BrandOut(ApiModel):
    id: str = Field(alias="_id")
    name: str
    description: str = ""

    @classmethod
    def from_domain(cls, brand: Brand) -> "BrandOut":
        return cls(id=brand.brand_id, name=brand.name, description=brand.description)


class FirmOut(ApiModel):
    id: str = Field(alias="_id")
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    image: Optional[str] = None

    @classmethod
    def from_domain(cls, firm: Firm) -> "FirmOut":
        return cls(id=firm.firm_id, name=firm.name, phone=firm.phone, address=firm.address, image=firm.image)


class ProductOut(ApiModel):
    id: str = Field(alias="_id")
    name: str
    category_id: str
    brand_id: str
    price: Money
    quantity: int
    purchase_count: int
    sold_count: int
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, product: Product) -> "ProductOut":
        return cls(
            id=product.product_id,
            name=product.name,
            category_id=product.category_id,
            brand_id=product.brand_id,
            price=product.price,
            quantity=product.quantity,
            purchase_count=product.purchase_count,
            sold_count=product.sold_count,
            created_at=product.created_at,
        )


class UserOut(ApiModel):
    id: str = Field(alias="_id")
    username: str
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_domain(cls, user: User) -> "UserOut":
        return cls(
            id=user.user_id,
            username=user.username,
            role=user.role.value,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
        )


class CategoryRequest(ApiModel):
    name: Optional[str] = None

    model_config = ConfigDict(json_schema_extra={"example": {"name": "Strings"}})


class BrandCreateRequest(ApiModel):
    name: Optional[str] = None
    description: str = ""


class BrandUpdateRequest(ApiModel):
    name: Optional[str] = None
    description: Optional[str] = None


class ProductCreateRequest(ApiModel):
    """New catalog entry. Stock starts at 0 and arrives through purchases."""
    name: Optional[str] = None
    category_id: str
    brand_id: str
    price: Decimal = Field(Decimal("0"), ge=0)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "categoryId": "65343222b67e9681f937f203",
                "brandId": "65343222b67e9681f937f107",
                "name": "Product 1",
                "price": "49.90",
            }
        }
    )


class ProductUpdateRequest(ApiModel):
    name: Optional[str] = None
    category_id: Optional[str] = None
    brand_id: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)


class FirmCreateRequest(ApiModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    image: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={"example": {"name": "Firm Name", "phone": "123-456-7890", "address": "123 Main St"}}
    )


class FirmUpdateRequest(ApiModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    image: Optional[str] = None


# ============================================================================
# Ledger
# ============================================================================

class SellOut(ApiModel):
    id: str = Field(alias="_id")
    product_id: str
    seller_id: Optional[str] = None
    user_id: Optional[str] = None
    brand_id: Optional[str] = None
    quantity: int
    sell_price: Money
    amount: Money
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, sell: Sell) -> "SellOut":
        return cls(
            id=sell.sell_id,
            product_id=sell.product_id,
            seller_id=resolve_id(sell.seller_id),
            user_id=resolve_id(sell.user_id),
            brand_id=sell.brand_id,
            quantity=sell.quantity,
            sell_price=sell.sell_price,
            amount=sell.amount,
            created_at=sell.created_at,
        )


class PurchaseOut(ApiModel):
    id: str = Field(alias="_id")
    product_id: str
    user_id: Optional[str] = None
    firm_id: Optional[str] = None
    brand_id: Optional[str] = None
    quantity: int
    purchase_price: Money
    amount: Money
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, purchase: Purchase) -> "PurchaseOut":
        return cls(
            id=purchase.purchase_id,
            product_id=purchase.product_id,
            user_id=resolve_id(purchase.user_id),
            firm_id=purchase.firm_id,
            brand_id=purchase.brand_id,
            quantity=purchase.quantity,
            purchase_price=purchase.purchase_price,
            amount=purchase.amount,
            created_at=purchase.created_at,
        )


class SellCreateRequest(ApiModel):
    """Request to record a sell. productId, sellerId and userId are required selections."""
    product_id: Optional[str] = None
    seller_id: Optional[UserReference] = None
    user_id: Optional[UserReference] = None
    quantity: int = Field(1, ge=1)
    sell_price: Decimal = Field(Decimal("0"), ge=0)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "productId": "65343222b67e9681f937f422",
                "sellerId": "65343222b67e9681f937f101",
                "userId": "65343222b67e9681f937f102",
                "quantity": 2,
                "sellPrice": "10.00",
            }
        }
    )


class SellUpdateRequest(ApiModel):
    quantity: Optional[int] = Field(None, ge=1)
    sell_price: Optional[Decimal] = Field(None, ge=0)
    seller_id: Optional[UserReference] = None


class PurchaseCreateRequest(ApiModel):
    product_id: Optional[str] = None
    user_id: Optional[UserReference] = None
    firm_id: Optional[str] = None
    quantity: int = Field(1, ge=1)
    purchase_price: Decimal = Field(Decimal("0"), ge=0)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "productId": "65343222b67e9681f937f422",
                "firmId": "65343222b67e9681f937f304",
                "quantity": 1000,
                "purchasePrice": "20.00",
            }
        }
    )


class PurchaseUpdateRequest(ApiModel):
    quantity: Optional[int] = Field(None, ge=1)
    purchase_price: Optional[Decimal] = Field(None, ge=0)
    firm_id: Optional[str] = None


# ============================================================================
# Category summary
# ============================================================================

class ProductCountOut(ApiModel):
    name: str
    count: int

    @classmethod
    def from_rank(cls, rank: Optional[ProductRank]) -> Optional["ProductCountOut"]:
        return cls(name=rank.name, count=rank.count) if rank else None


class TopBuyerOut(ApiModel):
    id: str = Field(alias="_id")
    total_purchased: int


class TopSellerOut(ApiModel):
    id: str = Field(alias="_id")
    total_sold: int


class CategorySummaryOut(ApiModel):
    product_count: int
    most_purchased: Optional[ProductCountOut] = None
    most_sold: Optional[ProductCountOut] = None
    top_buyers: List[TopBuyerOut]
    top_sellers: List[TopSellerOut]

    @classmethod
    def from_domain(cls, summary: CategorySummary) -> "CategorySummaryOut":
        return cls(
            product_count=summary.product_count,
            most_purchased=ProductCountOut.from_rank(summary.most_purchased),
            most_sold=ProductCountOut.from_rank(summary.most_sold),
            top_buyers=[TopBuyerOut(id=t.party_id, total_purchased=t.total) for t in summary.top_buyers],
            top_sellers=[TopSellerOut(id=t.party_id, total_sold=t.total) for t in summary.top_sellers],
        )


class TopSoldProductOut(ApiModel):
    name: str
    sold_count: int


class TopPurchasedProductOut(ApiModel):
    name: str
    purchase_count: int


class ProductProfitOut(ApiModel):
    id: str = Field(alias="_id")
    name: str
    profit: Money

    @classmethod
    def from_domain(cls, item: ProductProfit) -> "ProductProfitOut":
        return cls(id=item.product_id, name=item.name, profit=item.profit)


class BigBuyerOut(ApiModel):
    id: str = Field(alias="_id")
    name: str
    total_spent: Money


class BigSellerOut(ApiModel):
    id: str = Field(alias="_id")
    name: str
    total_sold: Money


class CategoryReportOut(ApiModel):
    category_id: str
    category_name: str
    product_count: int
    total_money_spent: Money
    total_money_gained: Money
    profit: Money
    top_sold_product: Optional[TopSoldProductOut] = None
    top_purchased_product: Optional[TopPurchasedProductOut] = None
    profitable_products: List[ProductProfitOut]
    big_buyer: Optional[BigBuyerOut] = None
    big_seller: Optional[BigSellerOut] = None

    @classmethod
    def from_domain(cls, report: CategoryReport) -> "CategoryReportOut":
        def buyer(party: Optional[PartyAmount]) -> Optional[BigBuyerOut]:
            return BigBuyerOut(id=party.party_id, name=party.name, total_spent=party.amount) if party else None

        def seller(party: Optional[PartyAmount]) -> Optional[BigSellerOut]:
            return BigSellerOut(id=party.party_id, name=party.name, total_sold=party.amount) if party else None

        sold = report.top_sold_product
        bought = report.top_purchased_product
        return cls(
            category_id=report.category_id,
            category_name=report.category_name,
            product_count=report.product_count,
            total_money_spent=report.total_money_spent,
            total_money_gained=report.total_money_gained,
            profit=report.profit,
            top_sold_product=TopSoldProductOut(name=sold.name, sold_count=sold.count) if sold else None,
            top_purchased_product=(
                TopPurchasedProductOut(name=bought.name, purchase_count=bought.count) if bought else None
            ),
            profitable_products=[ProductProfitOut.from_domain(p) for p in report.profitable_products],
            big_buyer=buyer(report.big_buyer),
            big_seller=seller(report.big_seller),
        )


# ============================================================================
# Sales report (filtered rollup)
# ============================================================================

class SelectionOut(ApiModel):
    category_id: Optional[str] = None
    brand_id: Optional[str] = None
    product_id: Optional[str] = None
    seller_id: Optional[str] = None


class TotalsOut(ApiModel):
    revenue: Money
    profit: Money
    quantity: int
    sell_count: int

    @classmethod
    def from_domain(cls, totals: RollupTotals) -> "TotalsOut":
        return cls(
            revenue=totals.revenue,
            profit=totals.profit,
            quantity=totals.quantity,
            sell_count=totals.sell_count,
        )


class ProductAverageOut(ApiModel):
    product_id: str
    total_quantity: int
    avg_sell_price: Money
    avg_purchase_price: Money
    avg_profit: Money

    @classmethod
    def from_domain(cls, item: ProductAverage) -> "ProductAverageOut":
        return cls(
            product_id=item.product_id,
            total_quantity=item.total_quantity,
            avg_sell_price=item.average_sell_price,
            avg_purchase_price=item.average_purchase_price,
            avg_profit=item.average_profit,
        )


class SellerTotalOut(ApiModel):
    seller_id: str
    total_sold: Money
    total_profit: Money

    @classmethod
    def from_domain(cls, item: SellerTotal) -> "SellerTotalOut":
        return cls(seller_id=item.seller_id, total_sold=item.total_sold, total_profit=item.total_profit)


class SellRowOut(ApiModel):
    id: str = Field(alias="_id")
    product_id: str
    quantity: int
    sell_price: Money
    avg_purchase_price: Money
    total: Money
    profit: Money


class SalesReportOut(ApiModel):
    selection: SelectionOut
    totals: TotalsOut
    product_averages: List[ProductAverageOut]
    seller_totals: List[SellerTotalOut]
    rows: List[SellRowOut]
    generated_at: datetime

    @classmethod
    def from_domain(cls, report: SalesReport) -> "SalesReportOut":
        rollup = report.rollup
        sel = report.selection
        return cls(
            selection=SelectionOut(
                category_id=sel.category_id,
                brand_id=sel.brand_id,
                product_id=sel.product_id,
                seller_id=sel.seller_id,
            ),
            totals=TotalsOut.from_domain(rollup.totals),
            product_averages=[ProductAverageOut.from_domain(p) for p in rollup.product_averages],
            seller_totals=[SellerTotalOut.from_domain(s) for s in rollup.seller_totals],
            rows=[
                SellRowOut(
                    id=row.sell_id,
                    product_id=row.product_id,
                    quantity=row.quantity,
                    sell_price=row.sell_price,
                    avg_purchase_price=row.average_purchase_price,
                    total=row.revenue,
                    profit=row.profit,
                )
                for row in rollup.rows
            ],
            generated_at=report.generated_at,
        )
