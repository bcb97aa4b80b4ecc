"""Тесты обработчиков Telegram-бота"""
from types import SimpleNamespace
from unittest.mock import AsyncMock
import pytest
from aiogram.filters import CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.fsm.storage.base import StorageKey
from aiogram.fsm.storage.memory import MemoryStorage
from bot.handlers import auction as auction_handlers
from bot.handlers import start as start_handlers
from bot.handlers.auction import BidState, error_text, parse_amount
from services.errors import InvalidAmountError, StoreUnavailableError, ValidationError


def make_message(text="", user_id=42, username="alice"):
    message = AsyncMock()
    message.text = text
    message.from_user = SimpleNamespace(id=user_id, username=username, first_name="Alice")
    return message


def make_callback(data, user_id=42, username="alice"):
    callback = AsyncMock()
    callback.data = data
    callback.from_user = SimpleNamespace(id=user_id, username=username, first_name="Alice")
    callback.message = make_message(user_id=user_id, username=username)
    return callback


def answered_text(message) -> str:
    return message.answer.await_args.args[0]


async def make_state(**data) -> FSMContext:
    state = FSMContext(storage=MemoryStorage(), key=StorageKey(bot_id=1, chat_id=42, user_id=42))
    await state.set_state(BidState.waiting_amount)
    await state.set_data(data)
    return state


@pytest.mark.parametrize("text,expected", [
    ("60", 60),
    ("1 500", 1500),
    ("1,500", 1500),
    (" 75 ", 75),
    ("-5", None),
    ("12.5", None),
    ("abc", None),
    ("", None),
    (None, None),
])
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


async def test_start_shows_balance(bidding):
    message = make_message("/start")

    await start_handlers.cmd_start(message, bidding)

    text = answered_text(message)
    assert "Mini Praisells" in text
    assert "1,000 aC" in text


async def test_balance_after_bid(bidding, auction):
    await bidding.place_bid("42", "alice", "auction1", 100)
    message = make_message("/balance")

    await start_handlers.cmd_balance(message, bidding)

    assert "900 aC" in answered_text(message)


async def test_auctions_list(bidding, auction):
    message = make_message("/auctions")

    await auction_handlers.cmd_auctions(message, bidding)

    text = answered_text(message)
    assert "Neon Cityscape" in text
    markup = message.answer.await_args.kwargs["reply_markup"]
    assert markup.inline_keyboard[0][0].callback_data == "bid:min:auction1"
    assert "51 aC" in markup.inline_keyboard[0][0].text


async def test_auctions_list_empty(bidding):
    message = make_message("/auctions")

    await auction_handlers.cmd_auctions(message, bidding)

    assert answered_text(message) == "Сейчас нет активных аукционов"


async def test_bid_command(bidding, auction):
    message = make_message("/bid auction1 60")
    command = CommandObject(prefix="/", command="bid", args="auction1 60")

    await auction_handlers.cmd_bid(message, command, bidding)

    assert "принята" in answered_text(message)
    user = await bidding.get_balance("42", "alice")
    assert user.balance == 940


async def test_bid_command_usage(bidding):
    message = make_message("/bid auction1")
    command = CommandObject(prefix="/", command="bid", args="auction1")

    await auction_handlers.cmd_bid(message, command, bidding)

    assert answered_text(message).startswith("Использование")


async def test_bid_command_too_low(bidding, auction):
    message = make_message("/bid auction1 50")
    command = CommandObject(prefix="/", command="bid", args="auction1 50")

    await auction_handlers.cmd_bid(message, command, bidding)

    assert "51 aC" in answered_text(message)


async def test_outbid_user_is_notified(bidding, auction):
    await bidding.place_bid("7", "bob", "auction1", 60)
    message = make_message("/bid auction1 70")
    command = CommandObject(prefix="/", command="bid", args="auction1 70")

    await auction_handlers.cmd_bid(message, command, bidding)

    message.bot.send_message.assert_awaited_once()
    assert message.bot.send_message.await_args.kwargs["chat_id"] == 7


async def test_unbid_command(bidding, auction):
    await bidding.place_bid("42", "alice", "auction1", 80)
    message = make_message("/unbid auction1")
    command = CommandObject(prefix="/", command="unbid", args="auction1")

    await auction_handlers.cmd_unbid(message, command, bidding)

    assert "80 aC" in answered_text(message)
    assert await bidding.list_user_bids("42") == []


async def test_unbid_without_bid(bidding, auction):
    message = make_message("/unbid auction1")
    command = CommandObject(prefix="/", command="unbid", args="auction1")

    await auction_handlers.cmd_unbid(message, command, bidding)

    assert answered_text(message) == "❌ У вас нет активной ставки на этом аукционе"


async def test_my_bids(bidding, auction):
    await bidding.place_bid("42", "alice", "auction1", 65)
    message = make_message("/mybids")

    await auction_handlers.cmd_my_bids(message, bidding)

    assert "65 aC" in answered_text(message)
    markup = message.answer.await_args.kwargs["reply_markup"]
    assert markup.inline_keyboard[0][0].callback_data == "bid:remove:auction1"


async def test_minimum_bid_button(bidding, auction):
    callback = make_callback("bid:min:auction1")

    await auction_handlers.place_bid_minimum(callback, bidding)

    bids = await bidding.list_user_bids("42")
    assert [b.amount for b in bids] == [51]
    callback.answer.assert_awaited()


async def test_remove_bid_button(bidding, auction):
    await bidding.place_bid("42", "alice", "auction1", 90)
    callback = make_callback("bid:remove:auction1")

    await auction_handlers.remove_bid(callback, bidding)

    assert await bidding.list_user_bids("42") == []
    assert "90 aC" in callback.answer.await_args.args[0]


async def test_custom_bid_flow(bidding, auction):
    state = FSMContext(storage=MemoryStorage(), key=StorageKey(bot_id=1, chat_id=42, user_id=42))
    callback = make_callback("bid:custom:auction1")

    await auction_handlers.start_custom_bid(callback, state, bidding)
    assert await state.get_state() == BidState.waiting_amount.state

    too_low = make_message("40")
    await auction_handlers.process_custom_bid(too_low, state, bidding)
    assert await state.get_state() == BidState.waiting_amount.state

    message = make_message("120")
    await auction_handlers.process_custom_bid(message, state, bidding)

    assert await state.get_state() is None
    bids = await bidding.list_user_bids("42")
    assert [b.amount for b in bids] == [120]


async def test_custom_bid_on_closed_auction_ends_dialogue(bidding, add_auction):
    await add_auction("closed", active=False)
    state = await make_state(auction_id="closed")
    message = make_message("60")

    await auction_handlers.process_custom_bid(message, state, bidding)

    assert answered_text(message) == "❌ Аукцион не найден или уже не активен"
    assert await state.get_state() is None


async def test_custom_bid_without_auction_ends_dialogue(bidding, auction):
    state = await make_state()
    message = make_message("60")

    await auction_handlers.process_custom_bid(message, state, bidding)

    assert "выберите его заново" in answered_text(message)
    assert await state.get_state() is None
    assert await bidding.list_user_bids("42") == []


async def test_custom_bid_store_unavailable_ends_dialogue(bidding, auction, monkeypatch):
    monkeypatch.setattr(
        bidding, "place_bid", AsyncMock(side_effect=StoreUnavailableError("Storage unavailable"))
    )
    state = await make_state(auction_id="auction1")
    message = make_message("60")

    await auction_handlers.process_custom_bid(message, state, bidding)

    assert answered_text(message) == "⚠️ Сервис временно недоступен, попробуйте позже"
    assert await state.get_state() is None


@pytest.mark.parametrize("text", ["5000", "0", "1000000"])
async def test_custom_bid_amount_can_be_retyped(bidding, auction, text):
    state = await make_state(auction_id="auction1")
    message = make_message(text)

    await auction_handlers.process_custom_bid(message, state, bidding)

    assert answered_text(message).startswith("❌")
    assert await state.get_state() == BidState.waiting_amount.state
    assert (await state.get_data())["auction_id"] == "auction1"


def test_error_text_separates_missing_fields_from_amount(bidding):
    missing = error_text(ValidationError("All fields required"), bidding)
    invalid = error_text(InvalidAmountError("Bid amount must be a positive whole number"), bidding)

    assert missing == "❌ Не указан аукцион или пользователь"
    assert invalid == "❌ Сумма должна быть целым числом от 1 до 999,999 aC"
