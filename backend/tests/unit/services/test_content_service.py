"""
Unit Tests for Content Service
"""
import pytest
from datetime import datetime, timedelta
from faker import Faker

from abroad_api.core.exceptions import ConflictError, ResourceNotFoundError
from abroad_api.models import Country, Faq, University
from abroad_api.services.content_service import ContentService, slugify

fake = Faker()


class TestSlugify:

    @pytest.mark.parametrize('value,expected', [
        ('TU Berlin', 'tu-berlin'),
        ('  Study in   Germany! ', 'study-in-germany'),
        ('MSc_Data--Science', 'msc-data-science'),
        ('Café Über', 'caf-ber'),
    ])
    def test_slugify(self, value, expected):
        assert slugify(value) == expected


class TestContentService:
    """Test the generic content operations"""

    async def test_create_and_get(self, db_session):
        service = ContentService(db_session)

        country = await service.create(Country, {'name': 'Germany'}, 'Country')

        assert (await service.get(Country, country.id, 'Country')).name == 'Germany'

    async def test_list_orders_by_priority_then_newest(self, db_session):
        service = ContentService(db_session)
        now = datetime.utcnow()
        await service.create(Country, {'name': 'Old', 'created_at': now - timedelta(days=2)}, 'Country')
        await service.create(Country, {'name': 'New', 'created_at': now}, 'Country')
        await service.create(Country, {'name': 'Pinned', 'priority': 5, 'created_at': now - timedelta(days=9)},
                             'Country')

        names = [c.name for c in await service.list_items(Country)]

        assert names == ['Pinned', 'New', 'Old']

    async def test_list_with_criteria(self, db_session):
        service = ContentService(db_session)
        germany = await service.create(Country, {'name': 'Germany'}, 'Country')
        await service.create(Faq, {'ques': 'Visa?', 'ans': 'Yes', **await service.country_reference(germany.id)},
                             'FAQ')
        await service.create(Faq, {'ques': 'General?', 'ans': 'Yes'}, 'FAQ')

        faqs = await service.list_items(Faq, Faq.country_id == germany.id)

        assert [f.ques for f in faqs] == ['Visa?']
        assert faqs[0].country_name == 'Germany'

    @pytest.mark.parametrize('item_id', ['not-a-uuid', None])
    async def test_get_invalid_id(self, db_session, item_id):
        with pytest.raises(ResourceNotFoundError) as exc_info:
            await ContentService(db_session).get(Country, item_id, 'Country')

        assert exc_info.value.message == 'Country not found'

    async def test_get_missing_id(self, db_session):
        with pytest.raises(ResourceNotFoundError):
            await ContentService(db_session).get(Country, fake.uuid4(), 'Country')

    async def test_unique_check(self, db_session):
        service = ContentService(db_session)
        germany = await service.create(Country, {'name': 'Germany'}, 'Country')
        university = await service.create(
            University, {'name': 'TU Berlin', 'slug': 'tu-berlin', **await service.country_reference(germany.id)},
            'University',
        )

        with pytest.raises(ConflictError):
            await service.ensure_unique(University, University.name, 'TU Berlin', 'University')

        # The record itself does not conflict with its own name
        await service.ensure_unique(University, University.name, 'TU Berlin', 'University',
                                    exclude_id=university.id)

    async def test_university_reference(self, db_session):
        service = ContentService(db_session)
        germany = await service.create(Country, {'name': 'Germany'}, 'Country')
        university = await service.create(
            University, {'name': 'TU Berlin', 'slug': 'tu-berlin', **await service.country_reference(germany.id)},
            'University',
        )

        assert await service.university_reference(university.id) == {
            'university_id': university.id,
            'university_name': 'TU Berlin',
            'university_slug': 'tu-berlin',
        }

    async def test_update_and_delete(self, db_session):
        service = ContentService(db_session)
        country = await service.create(Country, {'name': 'Germany'}, 'Country')

        await service.update(country, {'name': 'Deutschland'})
        assert country.name == 'Deutschland'

        assert await service.delete(Country, country.id, 'Country') == country.id
        with pytest.raises(ResourceNotFoundError):
            await service.delete(Country, country.id, 'Country')
