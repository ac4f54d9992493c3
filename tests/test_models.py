"""
Unit tests for request parsing and the wire models.
"""

import pytest

from plaque_preview.errors import ValidationError
from plaque_preview.models import LayoutAdjustments, PlayerCardData, parse_configuration


def base_payload(**overrides):
    payload = {
        'plaqueType': '4',
        'plaqueStyle': 'dark-maple-wood',
        'teamName': 'Champions',
        'playerCards': [],
    }
    payload.update(overrides)
    return payload


class TestParseConfiguration:

    def test_string_plaque_type_coerced(self):
        config = parse_configuration(base_payload(plaqueType='7'))
        assert config.plaque_type == 7

    def test_integer_plaque_type(self):
        assert parse_configuration(base_payload(plaqueType=10)).plaque_type == 10

    def test_defaults(self):
        config = parse_configuration(base_payload())
        assert config.show_card_backs is False
        assert config.layout_adjustments.is_neutral
        assert config.player_cards == []

    def test_null_adjustments_are_neutral(self):
        config = parse_configuration(base_payload(layoutAdjustments=None))
        assert config.layout_adjustments.is_neutral

    @pytest.mark.parametrize("field", ['plaqueType', 'teamName', 'playerCards'])
    def test_missing_required_field(self, field):
        payload = base_payload()
        del payload[field]
        with pytest.raises(ValidationError) as exc_info:
            parse_configuration(payload)
        assert field in exc_info.value.details['missing_fields']

    def test_blank_team_name_rejected(self):
        with pytest.raises(ValidationError):
            parse_configuration(base_payload(teamName='   '))

    def test_non_object_body_rejected(self):
        with pytest.raises(ValidationError):
            parse_configuration(None)
        with pytest.raises(ValidationError):
            parse_configuration(['not', 'a', 'dict'])

    def test_malformed_card_reports_field(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_configuration(base_payload(playerCards=[{'price': 3}]))
        fields = [e['field'] for e in exc_info.value.details['errors']]
        assert any('playerName' in f for f in fields)

    def test_non_numeric_plaque_type_rejected(self):
        with pytest.raises(ValidationError):
            parse_configuration(base_payload(plaqueType='large'))

    def test_round_trip_keeps_camel_case(self):
        config = parse_configuration(base_payload(
            showCardBacks=True,
            layoutAdjustments={'cardSizeAdjustment': 90, 'horizontalOffset': 12},
            playerCards=[{'playerName': 'A', 'imageUrl': '', 'price': 1}],
        ))
        wire = config.to_wire()
        assert wire['plaqueType'] == 4
        assert wire['showCardBacks'] is True
        assert wire['layoutAdjustments']['cardSizeAdjustment'] == 90
        assert wire['layoutAdjustments']['horizontalOffsetPx'] == 12
        assert wire['playerCards'][0]['playerName'] == 'A'


class TestLayoutAdjustments:

    def test_zero_percentages_mean_neutral(self):
        adjustments = LayoutAdjustments.model_validate({'cardSizeAdjustment': 0, 'cardSpacingAdjustment': None})
        assert adjustments.card_size_adjustment == 100
        assert adjustments.card_spacing_adjustment == 100

    def test_legacy_offset_keys(self):
        adjustments = LayoutAdjustments.model_validate({'horizontalOffset': 5, 'verticalOffset': -3})
        assert adjustments.horizontal_offset_px == 5
        assert adjustments.vertical_offset_px == -3
        assert not adjustments.is_neutral


class TestPlayerCardData:

    def test_display_helpers(self):
        card = PlayerCardData(player_name='Joe Burrow', year=2020, brand='Panini', price=7)
        assert card.edition_line == '2020 Panini'
        assert card.price_label == '$7.00'

    def test_edition_line_skips_missing_parts(self):
        assert PlayerCardData(player_name='X', brand='Topps').edition_line == 'Topps'
        assert PlayerCardData(player_name='X', year=1999).edition_line == '1999'

    def test_rarity_normalized(self):
        assert PlayerCardData(player_name='X', rarity='Legendary').rarity == 'legendary'
        assert PlayerCardData(player_name='X', rarity='').rarity == 'common'

    def test_unknown_rarity_rejected(self):
        with pytest.raises(Exception):
            PlayerCardData(player_name='X', rarity='mythic')

    def test_null_image_url_allowed(self):
        assert PlayerCardData.model_validate({'playerName': 'X', 'imageUrl': None}).image_url is None

    @pytest.mark.parametrize("key,value", [
        ('cardSizeAdjustment', float('nan')),
        ('cardSpacingAdjustment', float('inf')),
        ('horizontalOffsetPx', float('inf')),
        ('verticalOffsetPx', float('-inf')),
    ])
    def test_non_finite_values_rejected(self, key, value):
        with pytest.raises(ValidationError) as exc_info:
            parse_configuration(base_payload(layoutAdjustments={key: value}))
        fields = [e['field'] for e in exc_info.value.details['errors']]
        assert any(key in f for f in fields)

    @pytest.mark.parametrize("key,value", [
        ('cardSizeAdjustment', 4000),
        ('cardSizeAdjustment', 49),
        ('cardSpacingAdjustment', 151),
        ('horizontalOffsetPx', 10 ** 9),
    ])
    def test_out_of_range_values_rejected(self, key, value):
        with pytest.raises(ValidationError):
            parse_configuration(base_payload(layoutAdjustments={key: value}))

    def test_range_limits_accepted(self):
        adjustments = LayoutAdjustments.model_validate({
            'cardSizeAdjustment': 150, 'cardSpacingAdjustment': 50,
            'horizontalOffsetPx': -5000, 'verticalOffsetPx': 5000,
        })
        assert adjustments.card_size_adjustment == 150
        assert adjustments.card_spacing_adjustment == 50
