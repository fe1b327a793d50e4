import pytest
from portal.security.input_validator import InputValidator


@pytest.fixture
def validator():
    return InputValidator()


def valid_registration(**overrides):
    data = {
        'first_name': 'Jane',
        'last_name': 'Doe',
        'email': 'Jane@X.com ',
        'phone': '0700000000',
        'national_id': 'ID123456',
        'profile_pic_url': None,
    }
    data.update(overrides)
    return data


def test_sanitize_string_basic(validator):
    assert validator.sanitize_string("Hello World") == "Hello World"
    assert validator.sanitize_string(" extra spaces  ") == "extra spaces"

    # markup is stripped, entities come back as plain text
    assert validator.sanitize_string("<p>text</p>") == "text"
    assert validator.sanitize_string("<b>Roads</b> & bridges") == "Roads & bridges"

    long_string = "a" * 300
    assert len(validator.sanitize_string(long_string)) == 255
    assert len(validator.sanitize_string(long_string, max_length=1000)) == 300

    assert validator.sanitize_string('<script>alert("xss")</script>') == ""
    assert "onclick" not in validator.sanitize_string('<a onclick=alert(1)>x</a>')


def test_sanitize_string_invalid_input(validator):
    with pytest.raises(ValueError, match="Input must be a string"):
        validator.sanitize_string(123)
    with pytest.raises(ValueError, match="Input must be a string"):
        validator.sanitize_string(None)


def test_validate_email(validator):
    assert validator.validate_email("user@example.com")
    assert validator.validate_email("user.name+tag@example.co.uk")

    assert not validator.validate_email("not-an-email")
    assert not validator.validate_email("@example.com")
    assert not validator.validate_email("user@")
    assert not validator.validate_email("user@.com")
    assert not validator.validate_email("")
    assert not validator.validate_email(None)


def test_validate_phone_and_national_id(validator):
    assert validator.validate_phone("0700000000")
    assert validator.validate_phone("+254 700 000 000")
    assert not validator.validate_phone("070000")
    assert not validator.validate_phone("07000000ab")

    assert validator.validate_national_id("ID123456")
    assert validator.validate_national_id("1234567")
    assert not validator.validate_national_id("123456")
    assert not validator.validate_national_id("ID 12345")


def test_validate_url(validator):
    assert validator.validate_url("https://x/form.pdf")
    assert validator.validate_url("http://storage.example.com/a.png")
    assert not validator.validate_url("ftp://x/form.pdf")
    assert not validator.validate_url("form.pdf")
    assert not validator.validate_url("")
    assert not validator.validate_url(None)


def test_validate_registration_normalizes(validator):
    cleaned = validator.validate_registration(valid_registration(first_name='<i>Jane</i>'))
    assert cleaned['first_name'] == 'Jane'
    assert cleaned['email'] == 'jane@x.com'
    assert cleaned['profile_pic_url'] is None


@pytest.mark.parametrize("overrides,message", [
    ({'first_name': 'J'}, "First name must be at least 2 characters."),
    ({'last_name': ''}, "Missing required field: last_name"),
    ({'email': 'jane'}, "Please enter a valid email address."),
    ({'phone': '12345'}, "Phone number must be at least 10 digits."),
    ({'national_id': 'ID1'}, "National ID must be at least 7 characters."),
    ({'profile_pic_url': 'not a url'}, "Please enter a valid URL."),
])
def test_validate_registration_rejects(validator, overrides, message):
    with pytest.raises(ValueError, match=message):
        validator.validate_registration(valid_registration(**overrides))


def test_normalize_sources(validator):
    sources = validator.normalize_sources([
        {'url': 'https://x/evidence.pdf', 'fileName': 'evidence.pdf'},
        {'id': 'abc', 'url': 'https://x/photo.jpg'},
    ])
    assert sources[0]['id']
    assert sources[0]['fileName'] == 'evidence.pdf'
    assert sources[1] == {'id': 'abc', 'url': 'https://x/photo.jpg'}
    assert validator.normalize_sources(None) == []
    assert validator.normalize_sources([]) == []


def test_normalize_sources_rejects_bad_entries(validator):
    with pytest.raises(ValueError, match="Invalid sources list"):
        validator.normalize_sources("https://x/evidence.pdf")
    with pytest.raises(ValueError, match="Invalid source url"):
        validator.normalize_sources([{'url': 'evidence.pdf'}])
    with pytest.raises(ValueError):
        validator.normalize_sources(["https://x/evidence.pdf"])
