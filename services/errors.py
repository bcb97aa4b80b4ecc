"""Ошибки торгов

Все ошибки, кроме StoreUnavailableError, являются штатным результатом
запроса и передаются клиенту в ответе с success=False.
"""


class BiddingError(Exception):
    """Базовая ошибка торгов"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BiddingError):
    """Отсутствующие или некорректные входные данные"""


class InvalidAmountError(ValidationError):
    """Сумма ставки не является целым числом в допустимых пределах"""


class InsufficientFundsError(BiddingError):
    """Недостаточно средств на балансе"""

    def __init__(self, balance: int, amount: int, currency: str = "appraiCENTS"):
        super().__init__(f"Insufficient {currency} balance")
        self.balance = balance
        self.amount = amount


class AuctionNotFoundError(BiddingError):
    """Аукцион не существует или не активен"""

    def __init__(self, auction_id: str):
        super().__init__("Auction not found or inactive")
        self.auction_id = auction_id


class BidTooLowError(BiddingError):
    """Ставка ниже минимально допустимой"""

    def __init__(self, minimum_bid: int, symbol: str = "aC"):
        super().__init__(f"Bid must be at least {minimum_bid} {symbol}")
        self.minimum_bid = minimum_bid


class BidNotFoundError(BiddingError):
    """У пользователя нет активной ставки на аукционе"""

    def __init__(self, user_id: str, auction_id: str):
        super().__init__("No active bid found")
        self.user_id = user_id
        self.auction_id = auction_id


class StoreUnavailableError(BiddingError):
    """Хранилище недоступно, запрос не может быть выполнен"""
