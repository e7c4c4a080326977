import re

from rest_framework import serializers

from thrifthub.core.models import User
from .models import Note

MENTION_RE = re.compile(r'@([\w.+-]+)')


def parse_mentions(content):
    """Ids of existing users mentioned as @username, in order of first mention"""
    usernames = []
    for username in MENTION_RE.findall(content or ''):
        username = username.rstrip('.')
        if username and username not in usernames:
            usernames.append(username)
    if not usernames:
        return []
    ids_by_name = dict(User.objects.filter(username__in=usernames).values_list('username', 'id'))
    return [ids_by_name[name] for name in usernames if name in ids_by_name]


class NoteSerializer(serializers.ModelSerializer):
    author_name = serializers.CharField(source='author.username', read_only=True)

    class Meta:
        model = Note
        fields = [
            'id', 'entity_type', 'entity_id', 'content', 'author', 'author_name', 'mentions',
            'is_pinned', 'pinned_at', 'pinned_by', 'created_at', 'updated_at'
        ]
        read_only_fields = ['author', 'mentions', 'is_pinned', 'pinned_at', 'pinned_by', 'created_at', 'updated_at']

    def validate_content(self, value):
        if not value.strip():
            raise serializers.ValidationError('Note cannot be empty.')
        return value

    def create(self, validated_data):
        validated_data['mentions'] = parse_mentions(validated_data['content'])
        return super().create(validated_data)

    def update(self, instance, validated_data):
        # A note stays attached to the record it was written on
        validated_data.pop('entity_type', None)
        validated_data.pop('entity_id', None)
        if 'content' in validated_data:
            validated_data['mentions'] = parse_mentions(validated_data['content'])
        return super().update(instance, validated_data)
