import pytest
from django.db import IntegrityError
from rest_framework.exceptions import NotFound, PermissionDenied

from accounts.models import CustomUser
from bidding_api.exceptions import InvalidArgument
from chat.models import Conversation, Message
from chat.serializers import ConversationListItemSerializer
from chat.services import ChatService

pytestmark = pytest.mark.django_db


@pytest.fixture
def service(transport):
    return ChatService(transport=transport)


@pytest.fixture
def conversation(service, buyer, seller):
    conversation, _ = service.get_or_create_conversation(buyer.id, seller.id)
    return conversation


class TestConversations:

    def test_create_publishes_to_both_participants(self, service, transport, buyer, seller):
        conversation, is_new = service.get_or_create_conversation(buyer.id, seller.id)

        assert is_new is True
        events = transport.named('new_conversation_created')
        assert {(kind, target) for kind, target, _, _ in events} == {('user', buyer.id), ('user', seller.id)}
        payload = events[0][3]
        assert payload['conversation']['id'] == conversation.id
        assert {p['id'] for p in payload['participants']} == {buyer.id, seller.id}

    def test_either_ordering_returns_existing(self, service, transport, conversation, buyer, seller):
        transport.events.clear()

        found, is_new = service.get_or_create_conversation(seller.id, buyer.id)

        assert found == conversation
        assert is_new is False
        assert transport.events == []
        assert Conversation.objects.count() == 1

    def test_self_conversation_rejected(self, service, buyer):
        with pytest.raises(InvalidArgument):
            service.get_or_create_conversation(buyer.id, buyer.id)

    def test_unknown_user(self, service, buyer):
        with pytest.raises(NotFound):
            service.get_or_create_conversation(buyer.id, 999999)

    def test_pair_is_unique_in_database(self, conversation, buyer, seller):
        with pytest.raises(IntegrityError):
            Conversation.objects.create(sender=seller, receiver=buyer)

    def test_lost_creation_race_returns_existing(self, service, transport, conversation, buyer, seller, monkeypatch):
        transport.events.clear()
        lookups = iter([None, conversation])
        monkeypatch.setattr(service, '_find_pair', lambda a, b: next(lookups))

        found, is_new = service.get_or_create_conversation(seller.id, buyer.id)

        assert found == conversation
        assert is_new is False
        assert transport.events == []

    def test_list_conversations(self, service, conversation, buyer, seller, make_user):
        third = make_user()
        other, _ = service.get_or_create_conversation(seller.id, third.id)
        service.send_message(buyer.id, conversation.id, 'first')
        service.send_message(third.id, other.id, 'latest')

        listed = list(service.list_conversations(seller.id))

        assert [c.id for c in listed] == [other.id, conversation.id]
        assert [c.message_count for c in listed] == [1, 1]
        assert list(service.list_conversations(third.id)) == [other]
        assert listed[0].latest_message.text == 'latest'

    def test_inbox_loads_latest_messages_in_bulk(self, service, buyer, make_user, django_assert_num_queries):
        for _ in range(3):
            peer = make_user(CustomUser.Role.SELLER)
            chat, _ = service.get_or_create_conversation(buyer.id, peer.id)
            service.send_message(peer.id, chat.id, 'hello')
            service.send_message(buyer.id, chat.id, f'reply to {peer.name}')
        empty, _ = service.get_or_create_conversation(buyer.id, make_user(CustomUser.Role.SELLER).id)

        with django_assert_num_queries(2):
            data = ConversationListItemSerializer(
                service.list_conversations(buyer.id), many=True, context={'viewer_id': buyer.id},
            ).data

        assert len(data) == 4
        by_id = {item['id']: item for item in data}
        assert by_id[empty.id]['latest_message'] is None
        assert by_id[empty.id]['message_count'] == 0
        filled = [item for item in data if item['id'] != empty.id]
        assert all(item['latest_message']['text'] == f"reply to {item['other_user']['name']}" for item in filled)
        assert all(item['message_count'] == 2 for item in filled)



class TestMessages:

    def test_send_updates_conversation_and_publishes(self, service, transport, conversation, buyer, seller):
        message = service.send_message(buyer.id, conversation.id, 'Hello there')

        conversation.refresh_from_db()
        assert conversation.last_message == 'Hello there'
        assert conversation.last_updated == message.created_at

        (room_event,) = transport.named('receive_message')
        assert room_event[:2] == ('conversation', conversation.id)
        assert room_event[3]['message']['text'] == 'Hello there'

        (notification,) = transport.named('new_message_notification')
        assert notification[:2] == ('user', seller.id)
        assert notification[3]['receiver_id'] == seller.id

    @pytest.mark.parametrize('text', ['', '   ', None])
    def test_blank_text_rejected(self, service, conversation, buyer, text):
        with pytest.raises(InvalidArgument):
            service.send_message(buyer.id, conversation.id, text)

        assert not Message.objects.exists()

    def test_non_participant_cannot_send(self, service, conversation, make_user):
        with pytest.raises(PermissionDenied):
            service.send_message(make_user().id, conversation.id, 'hi')

    def test_unknown_conversation(self, service, buyer):
        with pytest.raises(NotFound):
            service.send_message(buyer.id, 999999, 'hi')

    def test_pagination_returns_chronological_pages(self, service, conversation, buyer):
        for i in range(5):
            service.send_message(buyer.id, conversation.id, f'm{i}')

        page_one, meta = service.list_messages(buyer.id, conversation.id, page=1, page_size=2)
        page_three, last_meta = service.list_messages(buyer.id, conversation.id, page=3, page_size=2)

        assert [m.text for m in page_one] == ['m3', 'm4']
        assert meta == {'current_page': 1, 'total_pages': 3, 'total_messages': 5, 'has_more': True}
        assert [m.text for m in page_three] == ['m0']
        assert last_meta['has_more'] is False

    def test_empty_conversation_page(self, service, conversation, buyer):
        messages, meta = service.list_messages(buyer.id, conversation.id)

        assert messages == []
        assert meta == {'current_page': 1, 'total_pages': 0, 'total_messages': 0, 'has_more': False}

    @pytest.mark.parametrize('page, size', [(0, 10), (1, 0), (-2, 5)])
    def test_invalid_paging(self, service, conversation, buyer, page, size):
        with pytest.raises(InvalidArgument):
            service.list_messages(buyer.id, conversation.id, page=page, page_size=size)

    def test_page_size_is_capped(self, service, conversation, buyer):
        _, meta = service.list_messages(buyer.id, conversation.id, page=1, page_size=1000)

        assert meta['total_pages'] == 0

    def test_outsider_cannot_read(self, service, conversation, make_user):
        with pytest.raises(PermissionDenied):
            service.list_messages(make_user().id, conversation.id)


class TestReadState:

    def test_mark_read_is_idempotent(self, service, transport, conversation, buyer, seller):
        service.send_message(buyer.id, conversation.id, 'one')
        service.send_message(buyer.id, conversation.id, 'two')
        service.send_message(seller.id, conversation.id, 'mine')

        assert service.unread_count(seller.id) == 2
        assert service.mark_read(seller.id, conversation.id) == 2
        assert service.mark_read(seller.id, conversation.id) == 0
        assert service.unread_count(seller.id) == 0
        assert service.unread_count(buyer.id) == 1

        first, second = transport.named('messages_read')
        assert first[:2] == ('conversation', conversation.id)
        assert first[3]['read_by_user_id'] == seller.id
        assert first[3]['messages_marked'] == 2
        assert second[3]['messages_marked'] == 0

    def test_outsider_cannot_mark_read(self, service, conversation, make_user):
        with pytest.raises(PermissionDenied):
            service.mark_read(make_user().id, conversation.id)

    def test_unread_count_spans_conversations(self, service, conversation, buyer, seller, make_user):
        third = make_user()
        other, _ = service.get_or_create_conversation(third.id, seller.id)
        service.send_message(buyer.id, conversation.id, 'a')
        service.send_message(third.id, other.id, 'b')

        assert service.unread_count(seller.id) == 2
        assert service.unread_count(third.id) == 0
