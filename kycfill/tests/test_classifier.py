import httpx
import openai
import pytest

from kycfill.agent.classifier import SemanticClassifier, normalize_mapping
from kycfill.agent.heuristics import fallback_classify
from kycfill.agent.llm import JSON_ONLY_SUFFIX, ClassificationService, LLMContext, parse_model_output, unwrap_json_text
from kycfill.page.scanner import FieldCandidate
from kycfill.profile import SLOT_KEYS, IdentityProfile

from .fakes import FakeElement, StubChatClient, make_service


def candidates_for(*elements: FakeElement):
    result = []
    for index, element in enumerate(elements):
        props = {
            "tag": element.tag,
            "type": element.input_type,
            "name": element.name,
            "id": element.element_id,
            "placeholder": element.placeholder,
            "label": element.label,
            "value": element.value,
        }
        result.append(FieldCandidate.from_properties(index, element, props))
    return result


FULL_PROFILE = IdentityProfile.from_payload(
    {
        "firstName": "Ana",
        "lastName": "Lima",
        "email": "a@x.com",
        "phoneCountryCode": "+44",
        "phoneNumber": "7700900123",
        "firstAddressLine": "1 High Street",
        "secondAddressLine": "Flat 2",
        "city": "London",
        "postcode": "SW1A 1AA",
        "country": "United Kingdom",
        "dob": "1990-01-01",
        "passport": "passport_1",
        "selfie": "selfie_1",
    }
)


def connection_error() -> openai.APIConnectionError:
    return openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))


def test_unwrap_strips_code_fences_and_surrounding_text():
    assert unwrap_json_text('```json\n{"0": "email"}\n```') == '{"0": "email"}'
    assert unwrap_json_text('Sure! {"0": null} hope that helps') == '{"0": null}'


def test_parse_model_output_returns_raw_text_when_not_json():
    assert parse_model_output("I cannot help with that") == "I cannot help with that"
    assert parse_model_output('{"0": "dob"}') == {"0": "dob"}


@pytest.mark.asyncio
async def test_complete_appends_json_instruction():
    client = StubChatClient.scripted('{"ok": true}')
    service = make_service(client)

    assert await service.complete("Hello") == {"ok": True}
    assert client.prompts == ["Hello" + JSON_ONLY_SUFFIX]
    assert client.requests[0]["model"] == "gpt-test"


@pytest.mark.asyncio
async def test_complete_without_api_key_is_empty():
    service = ClassificationService(LLMContext(api_key=None))

    assert not service.available
    assert await service.complete("Hello") == {}


@pytest.mark.asyncio
async def test_complete_swallows_service_errors():
    service = make_service(StubChatClient.scripted(connection_error()))

    assert await service.complete("Hello") == {}


def test_normalize_mapping_fills_missing_and_rejects_unknown_values():
    raw = {"0": "firstName", 1: "favouriteColour", "7": "email", "x": "city"}

    assert normalize_mapping(raw, 3) == {0: "firstName", 1: None, 2: None}


@pytest.mark.parametrize(
    "raw",
    [{}, [], "nope", None, {"error": "rate limited"}, {"field_0": "email"}, {"mapping": {"0": "firstName"}}, {"7": "email"}],
)
def test_normalize_mapping_rejects_unusable_answers(raw):
    assert normalize_mapping(raw, 2) is None


def test_fallback_covers_every_index():
    candidates = candidates_for(
        FakeElement(placeholder="First Name"),
        FakeElement(name="email"),
        FakeElement(label="Phone country code"),
        FakeElement(label="Phone"),
        FakeElement(name="address_1"),
        FakeElement(name="address_2"),
        FakeElement(placeholder="Town"),
        FakeElement(name="zip"),
        FakeElement(label="Country"),
        FakeElement(label="Date of Birth"),
        FakeElement(input_type="file", name="selfie"),
        FakeElement(name="nickname"),
    )

    mapping = fallback_classify(candidates, FULL_PROFILE)

    assert sorted(mapping) == list(range(len(candidates)))
    assert all(slot is None or slot in SLOT_KEYS for slot in mapping.values())
    assert list(mapping.values()) == [
        "firstName",
        "email",
        "phoneCountryCode",
        "phoneNumber",
        "firstAddressLine",
        "secondAddressLine",
        "city",
        "postcode",
        "country",
        "dob",
        "selfie",
        None,
    ]


def test_fallback_requires_profile_value():
    candidates = candidates_for(FakeElement(placeholder="First Name"), FakeElement(placeholder="Last Name"))

    mapping = fallback_classify(candidates, IdentityProfile(first_name="Ana"))

    assert mapping == {0: "firstName", 1: None}


@pytest.mark.asyncio
async def test_classifier_uses_model_mapping():
    client = StubChatClient.scripted('```json\n{"0": "email", "1": null}\n```')
    classifier = SemanticClassifier(make_service(client))
    candidates = candidates_for(FakeElement(name="contact_mail"), FakeElement(name="promo"))

    mapping = await classifier.classify(candidates, FULL_PROFILE)

    assert mapping == {0: "email", 1: None}
    assert "There are 2 fields in total" in client.prompts[0]
    assert '"contact_mail"' in client.prompts[0]


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", ["not json", "{}", '{"mapping": {"0": "firstName", "1": "email"}}', connection_error()])
async def test_classifier_falls_back_on_unusable_answers(reply):
    classifier = SemanticClassifier(make_service(StubChatClient.scripted(reply)))
    candidates = candidates_for(FakeElement(placeholder="First Name"), FakeElement(placeholder="Email"))

    mapping = await classifier.classify(candidates, FULL_PROFILE)

    assert mapping == {0: "firstName", 1: "email"}


@pytest.mark.asyncio
async def test_classifier_with_no_candidates_skips_model():
    client = StubChatClient.scripted('{"0": "email"}')

    assert await SemanticClassifier(make_service(client)).classify([], FULL_PROFILE) == {}
    assert client.prompts == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply, expected",
    [
        ('{"buttonText": " Continue "}', "Continue"),
        ('{"index": 1}', "Next"),
        ("Next", "Next"),
        ('"Back"', "Back"),
        ('{"buttonText": "none"}', None),
        ("{}", None),
    ],
)
async def test_choose_next_action_accepts_several_answer_shapes(reply, expected):
    service = make_service(StubChatClient.scripted(reply))

    assert await service.choose_next_action(["Back", "Next", "Continue"]) == expected


@pytest.mark.asyncio
async def test_detect_dropdown_defaults_to_plain_button():
    service = make_service(StubChatClient.scripted("garbage", '{"isDropdown": true, "targetValue": "Germany"}'))

    plain = await service.detect_dropdown("Select", "<div></div>", "", "Germany")
    dropdown = await service.detect_dropdown("Select", "<div></div>", "", "Germany")

    assert (plain.is_dropdown, plain.target_value) == (False, "Germany")
    assert (dropdown.is_dropdown, dropdown.target_value) == (True, "Germany")


@pytest.mark.asyncio
async def test_phone_code_correction_keeps_code_on_failure():
    service = make_service(StubChatClient.scripted('{"phoneCountryCode": "+49"}', connection_error()))

    assert await service.correct_phone_country_code("Germany", "+44") == "+49"
    assert await service.correct_phone_country_code("Germany", "+44") == "+44"


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", ['{"phoneCountryCode": true}', '{"phoneCountryCode": "  "}', '{"code": "+49"}'])
async def test_phone_code_correction_ignores_malformed_codes(reply):
    service = make_service(StubChatClient.scripted(reply))

    assert await service.correct_phone_country_code("Germany", "+44") == "+44"
