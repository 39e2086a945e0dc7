"""Tests for the follow-up text after a call."""

import pytest

from services.intent.intent_classifier import Intent
from services.knowledge.business_profile import BusinessProfile
from services.sms.twilio_sms_service import TwilioSMSService, build_follow_up_text


def test_tour_text_has_link(profile):
    text = build_follow_up_text(Intent.TOUR, profile)
    assert text == f"Thanks for your interest in a tour at {profile.name}! Here's the link: {profile.tour_link}"


def test_fees_text_uses_semicolons(profile):
    text = build_follow_up_text(Intent.FEES, profile)
    assert text == f"Fees for {profile.name}: Toddler: $900/month; Preschool: $850/month"


def test_fees_text_without_fees():
    assert build_follow_up_text(Intent.FEES, BusinessProfile(name="X")) == "Fees for X: Contact us for details."


def test_other_intents_thank_the_caller(profile):
    text = build_follow_up_text(Intent.HOURS, profile)
    assert text == f"Thanks for calling {profile.name}! More info: {profile.website}"


def test_tour_without_link_falls_back():
    assert build_follow_up_text(Intent.TOUR, BusinessProfile(name="X")) == "Thanks for calling X! More info:"


@pytest.mark.asyncio
async def test_unconfigured_service_does_not_send():
    service = TwilioSMSService(account_sid="", auth_token="", from_number="")
    assert not service.is_available()
    assert await service.send_sms("+15550001111", "hi") is False


@pytest.mark.asyncio
async def test_withheld_number_is_skipped():
    service = TwilioSMSService(account_sid="AC1", auth_token="token", from_number="+15550009999")
    assert await service.send_sms("anonymous", "hi") is False
