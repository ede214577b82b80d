from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command

from admissions.models import Room
from billing.models import FinancialReport
from pharmacy.models import Medicine
from users.models import Doctor


@pytest.mark.django_db
class TestPopulateDummyData:

    def test_populate_is_repeatable(self):
        call_command('populate_dummy_data', stdout=StringIO())
        call_command('populate_dummy_data', stdout=StringIO())

        assert Doctor.objects.count() == 3
        assert Room.objects.filter(category=Room.ICU).count() == 2
        assert Medicine.objects.get(name='Insulin Pen').stock_quantity == 5
        assert all(d.schedules.exists() for d in Doctor.objects.all())


@pytest.mark.django_db
class TestRecalculateFinancials:

    def test_rebuilds_from_payments(self):
        FinancialReport.objects.create(report_type='YEARLY', period_label='1999', total_revenue=Decimal('10.00'))
        out = StringIO()

        call_command('recalculate_financials', stdout=out)

        assert not FinancialReport.objects.exists()
        assert 'Wrote 0 report rows' in out.getvalue()
