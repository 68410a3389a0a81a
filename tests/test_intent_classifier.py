import pytest

from assistant.intent_classifier import IntentClassifier, IntentResult, Timeframe, Topic, extract


@pytest.fixture()
def classifier():
    return IntentClassifier()


def test_order_status_question_in_turkish():
    result = extract("24-03-B002 siparişinin durumu nedir?")
    assert result.topic == Topic.ORDER
    assert result.order_number == "24-03-B002"
    assert result.is_status_query
    assert not result.is_delay_query


@pytest.mark.parametrize("text, expected", [
    ("Where is order 2403B002 right now", "2403B002"),
    ("check 24/04/E005 please", "24/04/E005"),
    ("24-03-A001-12 teslim tarihi", "24-03-A001-12"),
])
def test_order_number_forms(text, expected):
    result = extract(text)
    assert result.order_number == expected
    assert result.topic == Topic.ORDER


def test_order_number_forces_order_topic_over_material():
    result = extract("24-03-B002 için malzeme eksik mi?")
    assert result.topic == Topic.ORDER
    assert result.order_number == "24-03-B002"


def test_order_number_not_matched_inside_longer_token():
    assert extract("serial X24-03-B002 is unrelated").order_number is None


def test_topic_priority_order_before_material():
    result = extract("müşteri siparişleri için stok durumu")
    assert result.topic == Topic.ORDER


def test_material_topic():
    assert extract("Which materials are short in stock?").topic == Topic.MATERIAL


def test_production_topic_and_timeframe():
    result = extract("Bu hafta üretim planı nasıl?")
    assert result.topic == Topic.PRODUCTION
    assert result.timeframe == Timeframe.WEEK
    assert result.has_date_info


def test_quarter_beats_month():
    assert extract("3 aylık rapor hazırla").timeframe == Timeframe.QUARTER


def test_report_and_optimization_topics():
    assert extract("Send me the weekly report").topic == Topic.REPORT
    assert extract("Any recommendations to improve throughput?").topic == Topic.OPTIMIZATION


def test_delay_flag():
    result = extract("Geciken siparişler hangileri?")
    assert result.topic == Topic.ORDER
    assert result.is_delay_query


def test_delay_keyword_does_not_fire_on_related():
    assert not extract("orders related to AYEDAŞ").is_delay_query


def test_customer_extraction_is_case_insensitive(classifier):
    assert classifier.extract_customer("başkent edaş siparişleri") == "BAŞKENT EDAŞ"
    assert classifier.extract_customer("Orders for Enerjisa") == "ENERJİSA"


def test_technical_flag():
    result = extract("RM 36 CB technical drawing")
    assert result.is_technical_query


@pytest.mark.parametrize("text", ["", "   ", None, 42])
def test_empty_or_invalid_input_is_general(text):
    assert extract(text) == IntentResult()


def test_extract_is_idempotent():
    text = "24-04-D004 ne durumda, gecikme var mı?"
    assert extract(text) == extract(text)


def test_describe_flattens_enums(classifier):
    described = classifier.describe(classifier.extract("Bu ay üretim"))
    assert described["topic"] == "production"
    assert described["timeframe"] == "month"
