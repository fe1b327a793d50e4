# portal/security/input_validator.py

import re
import html
import uuid
import bleach
from urllib.parse import urlparse

# Input validation and sanitization for registration, petition and step fields


class InputValidator:
    def __init__(self):
        self.allowed_html_tags = []
        self.allowed_html_attributes = {}

        self.patterns = {
            'email': re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9-]+(\.[a-zA-Z0-9-]+)*\.[a-zA-Z]{2,}$'),
            'phone': re.compile(r'^\+?[0-9][0-9 \-]{8,}[0-9]$'),
            'national_id': re.compile(r'^[A-Za-z0-9\-]{7,32}$'),
            'xss_script': re.compile(r'<script[^>]*>.*?</script>', re.IGNORECASE | re.DOTALL),
            'xss_event': re.compile(r'\bon\w+\s*=', re.IGNORECASE)
        }

    def sanitize_string(self, input_str, max_length=255):
        if not isinstance(input_str, str):
            raise ValueError("Input must be a string")
        if len(input_str) > max_length:
            input_str = input_str[:max_length]

        sanitized = re.sub(self.patterns['xss_script'], '', input_str)
        sanitized = re.sub(self.patterns['xss_event'], '', sanitized)
        sanitized = bleach.clean(sanitized, tags=self.allowed_html_tags, attributes=self.allowed_html_attributes, strip=True)
        # bleach escapes entities; store plain text and let the UI escape on render
        return html.unescape(sanitized).strip()

    def validate_email(self, email):
        return isinstance(email, str) and bool(self.patterns['email'].match(email))

    def validate_phone(self, phone):
        return isinstance(phone, str) and len(phone) >= 10 and bool(self.patterns['phone'].match(phone))

    def validate_national_id(self, national_id):
        return isinstance(national_id, str) and bool(self.patterns['national_id'].match(national_id))

    def validate_name(self, name):
        return isinstance(name, str) and len(name.strip()) >= 2

    def validate_url(self, url):
        if not isinstance(url, str) or not url:
            return False
        parsed = urlparse(url)
        return parsed.scheme in ('http', 'https') and bool(parsed.netloc)

    def validate_registration(self, data):
        """Check and sanitize registration fields; raises ValueError on the first bad field."""
        if not isinstance(data, dict):
            raise ValueError("Registration data must be a dictionary")

        required_fields = ['first_name', 'last_name', 'email', 'phone', 'national_id']
        for field in required_fields:
            if not isinstance(data.get(field), str) or not data[field].strip():
                raise ValueError(f"Missing required field: {field}")

        cleaned = dict(data)
        cleaned['first_name'] = self.sanitize_string(data['first_name'], max_length=100)
        cleaned['last_name'] = self.sanitize_string(data['last_name'], max_length=100)
        if not self.validate_name(cleaned['first_name']):
            raise ValueError("First name must be at least 2 characters.")
        if not self.validate_name(cleaned['last_name']):
            raise ValueError("Last name must be at least 2 characters.")

        cleaned['email'] = data['email'].strip().lower()
        if not self.validate_email(cleaned['email']):
            raise ValueError("Please enter a valid email address.")

        cleaned['phone'] = data['phone'].strip()
        if not self.validate_phone(cleaned['phone']):
            raise ValueError("Phone number must be at least 10 digits.")

        cleaned['national_id'] = data['national_id'].strip()
        if not self.validate_national_id(cleaned['national_id']):
            raise ValueError("National ID must be at least 7 characters.")

        profile_pic_url = data.get('profile_pic_url') or None
        if profile_pic_url is not None and not self.validate_url(profile_pic_url):
            raise ValueError("Please enter a valid URL.")
        cleaned['profile_pic_url'] = profile_pic_url

        return cleaned

    def normalize_sources(self, sources):
        """Return sources as a list of {id, url, fileName?} dicts, generating missing ids."""
        if sources is None:
            return []
        if not isinstance(sources, list) or len(sources) > 50:
            raise ValueError("Invalid sources list")
        normalized = []
        for source in sources:
            if not isinstance(source, dict):
                raise ValueError("Each source must be an object with a url")
            url = source.get('url')
            if not self.validate_url(url):
                raise ValueError(f"Invalid source url: {url}")
            entry = {'id': str(source.get('id') or uuid.uuid4()), 'url': url}
            file_name = source.get('fileName')
            if file_name:
                entry['fileName'] = self.sanitize_string(str(file_name))
            normalized.append(entry)
        return normalized
