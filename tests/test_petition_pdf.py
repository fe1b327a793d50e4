import pytest
from portal.exporting.petition_pdf import export_petition_pdf


def form_data(**overrides):
    data = {
        'petitioner_identification': 'Residents of Kibera Ward',
        'grievances': 'The access road has been impassable since the March floods.',
        'prior_efforts_confirmation': True,
        'legal_status_confirmation': True,
        'prayer': 'Direct the roads authority to repair the access road.',
        'petitioners': [
            {'name': 'Jane Doe', 'address': '12 Mto Road', 'phone': '0700000000', 'national_id': 'ID123456'},
            {'name': 'Amos Otieno', 'address': '14 Mto Road', 'phone': '0711111111', 'nationalId': 'ID654321'},
        ],
    }
    data.update(overrides)
    return data


def test_export_produces_pdf():
    pdf = export_petition_pdf(form_data())
    assert isinstance(pdf, bytes)
    assert pdf.startswith(b'%PDF')


def test_export_without_petitioners_or_confirmations():
    pdf = export_petition_pdf(form_data(
        petitioners=[], prior_efforts_confirmation=False, legal_status_confirmation=False,
    ))
    assert pdf.startswith(b'%PDF')


def test_export_handles_text_outside_latin1():
    pdf = export_petition_pdf(form_data(grievances='Water supply — cut off for 3 weeks ✅'))
    assert pdf.startswith(b'%PDF')


@pytest.mark.parametrize("overrides", [
    {'grievances': ''},
    {'prayer': None},
    {'petitioner_identification': '   '},
    {'petitioners': 'Jane Doe'},
    {'petitioners': ['Jane Doe']},
])
def test_export_rejects_incomplete_forms(overrides):
    with pytest.raises(ValueError):
        export_petition_pdf(form_data(**overrides))


def test_export_rejects_non_dict():
    with pytest.raises(ValueError, match="must be an object"):
        export_petition_pdf(None)
