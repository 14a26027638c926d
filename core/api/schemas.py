"""Request body models for the HTTP API."""

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from config.constants import MIN_COMMISSION_RATE, MAX_COMMISSION_RATE
from database.models import TransactionType


class ReferralSettingsUpdate(BaseModel):
    """PUT /api/admin/referral-settings. Every rate is optional, 0-20 percent."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    property_commission_rate: Optional[Decimal] = Field(
        default=None, ge=MIN_COMMISSION_RATE, le=MAX_COMMISSION_RATE, alias="propertyCommissionRate"
    )
    equipment_commission_rate: Optional[Decimal] = Field(
        default=None, ge=MIN_COMMISSION_RATE, le=MAX_COMMISSION_RATE, alias="equipmentCommissionRate"
    )
    market_commission_rate: Optional[Decimal] = Field(
        default=None, ge=MIN_COMMISSION_RATE, le=MAX_COMMISSION_RATE, alias="marketCommissionRate"
    )
    green_energy_commission_rate: Optional[Decimal] = Field(
        default=None, ge=MIN_COMMISSION_RATE, le=MAX_COMMISSION_RATE, alias="greenEnergyCommissionRate"
    )

    def rates(self) -> Dict[str, Decimal]:
        """Provided rates keyed by column name."""
        return self.model_dump(exclude_none=True)


class RejectRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class BulkApproveRequest(BaseModel):
    ids: List[int] = Field(min_length=1)


class WalletAdjustmentRequest(BaseModel):
    amount: Decimal = Field(gt=0)
    reason: str = Field(min_length=1, max_length=500)
    type: TransactionType = TransactionType.WITHDRAWAL


class DepositRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: Decimal = Field(gt=0)
    crypto_type: str = Field(default="USDT", alias="cryptoType")
    tx_hash: Optional[str] = Field(default=None, alias="txHash")


class WithdrawalRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: Decimal = Field(gt=0)
    crypto_type: str = Field(default="USDT", alias="cryptoType")
