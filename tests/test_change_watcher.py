"""
Tests for mutation watching and navigation detection.
"""

import asyncio

import pytest

from price_reconciler.services.change_watcher import (
    PRODUCT_TARGET_SELECTORS,
    VENDOR_TARGET_SELECTORS,
    ChangeWatcher,
    NavigationMonitor,
)
from tests.fakes import FakePage, Node, product_card, vendor_card

LISTING_URL = "https://snappfood.ir/service/restaurant/city/tehran"
MENU_URL = "https://snappfood.ir/restaurant/menu/-r-abc123/"


def test_relevant_insertions_trigger():
    page = FakePage(LISTING_URL)
    triggered = []
    watcher = ChangeWatcher(page, VENDOR_TARGET_SELECTORS, lambda: triggered.append(1))
    watcher.start()

    card, _ = vendor_card("a1", "4.5")
    page.insert(card)
    page.insert(Node("div", text="banner"))

    assert watcher.notifications == 2
    assert watcher.triggers == 1
    assert triggered == [1]
    assert not watcher.watching_body
    assert page.subscriptions[0].root_selector == "#__next"


def test_product_cards_trigger_product_watcher():
    page = FakePage(MENU_URL)
    triggered = []
    watcher = ChangeWatcher(page, PRODUCT_TARGET_SELECTORS, lambda: triggered.append(1))
    watcher.start()

    wrapper = Node("div")
    wrapper.add(product_card("Burger"))
    page.insert(wrapper)

    assert triggered == [1]


def test_falls_back_to_body_without_app_root():
    page = FakePage(LISTING_URL, with_app_root=False)
    watcher = ChangeWatcher(page, VENDOR_TARGET_SELECTORS, lambda: None)

    watcher.start()

    assert watcher.watching_body
    assert page.subscriptions[0].root_selector is None


def test_start_is_idempotent_and_stop_disconnects():
    page = FakePage(LISTING_URL)
    triggered = []
    watcher = ChangeWatcher(page, VENDOR_TARGET_SELECTORS, lambda: triggered.append(1))

    watcher.start()
    watcher.start()
    assert len(page.subscriptions) == 1
    assert watcher.active

    watcher.stop()
    card, _ = vendor_card("a1")
    page.insert(card)

    assert not watcher.active
    assert page.active_subscriptions == []
    assert triggered == []


def test_navigation_check_reports_each_change_once():
    page = FakePage(LISTING_URL)
    seen = []
    monitor = NavigationMonitor(page, lambda prev, cur: seen.append((prev, cur)))

    assert not monitor.check()

    page.location = MENU_URL
    assert monitor.check()
    assert not monitor.check()

    assert seen == [(LISTING_URL, MENU_URL)]
    assert monitor.navigations == 1
    assert monitor.last_known_location == MENU_URL


@pytest.mark.asyncio
async def test_navigation_polling():
    page = FakePage(LISTING_URL)
    seen = []
    monitor = NavigationMonitor(page, lambda prev, cur: seen.append(cur), poll_interval=0.01)

    monitor.start()
    assert monitor.running
    page.location = MENU_URL
    await asyncio.sleep(0.05)
    await monitor.stop()

    assert seen == [MENU_URL]
    assert not monitor.running
