import pytest

from assistant.local_responder import DEFAULT_RESPONSE, LocalResponder


@pytest.mark.parametrize("prompt, rule", [
    ("hello", "greeting"),
    ("Merhaba", "greeting"),
    ("thanks a lot", "thanks"),
    ("24-03-B002 siparişinin durumu nedir?", "order-status"),
    ("how do I create a new order", "order-create"),
    ("Yeni sipariş oluşturmak istiyorum", "order-create"),
    ("stok durumu", "material-stock"),
    ("What is the production plan?", "production-plan"),
    ("show the plan", "production-plan"),
    ("Üretim planı nedir?", "production-plan"),
    ("how are things", "help"),
    ("Nasıl kullanırım?", "help"),
])
def test_keyword_rules(prompt, rule):
    assert LocalResponder().match(prompt)[0] == rule


@pytest.mark.parametrize("prompt", [
    "Can you show me the explanation?",
    "The border crossing is closed",
    "renewal notice",
    "xyzzy",
    "",
])
def test_keywords_inside_other_words_do_not_match(prompt):
    assert LocalResponder().match(prompt) == ("default", DEFAULT_RESPONSE)


def test_respond_returns_rule_text():
    assert LocalResponder().respond("hello") == "Hello! How can I help you today?"
