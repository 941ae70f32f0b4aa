from app.models.tenant import Tenant
from app.models.property import Property
from app.models.booking import Booking
from app.models.coupon import Coupon, CouponRedemption
from app.models.loyalty import LoyaltyAccount, LoyaltyTransaction
