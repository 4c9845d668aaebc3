"""
IATA airport code to ISO 3166-1 alpha-2 country code mapping.

Covers the major commercial airports served by the provider. Codes that are
not listed are treated as unknown rather than guessed.
"""

from __future__ import annotations

from typing import Optional

AIRPORT_COUNTRIES = {
    # South Korea
    "ICN": "KR",  # Seoul Incheon
    "GMP": "KR",  # Seoul Gimpo
    "PUS": "KR",  # Busan Gimhae
    "CJU": "KR",  # Jeju
    "TAE": "KR",  # Daegu
    # Japan
    "NRT": "JP",  # Tokyo Narita
    "HND": "JP",  # Tokyo Haneda
    "KIX": "JP",  # Osaka Kansai
    "ITM": "JP",  # Osaka Itami
    "NGO": "JP",  # Nagoya Chubu
    "FUK": "JP",  # Fukuoka
    "CTS": "JP",  # Sapporo New Chitose
    "OKA": "JP",  # Okinawa Naha
    # China, Hong Kong, Taiwan
    "PEK": "CN",  # Beijing Capital
    "PKX": "CN",  # Beijing Daxing
    "PVG": "CN",  # Shanghai Pudong
    "SHA": "CN",  # Shanghai Hongqiao
    "CAN": "CN",  # Guangzhou
    "SZX": "CN",  # Shenzhen
    "CTU": "CN",  # Chengdu
    "HKG": "HK",  # Hong Kong
    "TPE": "TW",  # Taipei Taoyuan
    "TSA": "TW",  # Taipei Songshan
    # South-East Asia and Oceania
    "SIN": "SG",  # Singapore Changi
    "BKK": "TH",  # Bangkok Suvarnabhumi
    "DMK": "TH",  # Bangkok Don Mueang
    "KUL": "MY",  # Kuala Lumpur
    "CGK": "ID",  # Jakarta
    "DPS": "ID",  # Bali Denpasar
    "MNL": "PH",  # Manila
    "SGN": "VN",  # Ho Chi Minh City
    "HAN": "VN",  # Hanoi
    "SYD": "AU",  # Sydney
    "MEL": "AU",  # Melbourne
    "BNE": "AU",  # Brisbane
    "PER": "AU",  # Perth
    "AKL": "NZ",  # Auckland
    # South Asia and Middle East
    "DEL": "IN",  # Delhi
    "BOM": "IN",  # Mumbai
    "BLR": "IN",  # Bengaluru
    "DXB": "AE",  # Dubai
    "AUH": "AE",  # Abu Dhabi
    "DOH": "QA",  # Doha
    "IST": "TR",  # Istanbul
    "SAW": "TR",  # Istanbul Sabiha Gokcen
    "TLV": "IL",  # Tel Aviv
    "RUH": "SA",  # Riyadh
    "JED": "SA",  # Jeddah
    # Europe
    "LHR": "GB",  # London Heathrow
    "LGW": "GB",  # London Gatwick
    "STN": "GB",  # London Stansted
    "MAN": "GB",  # Manchester
    "EDI": "GB",  # Edinburgh
    "DUB": "IE",  # Dublin
    "CDG": "FR",  # Paris Charles de Gaulle
    "ORY": "FR",  # Paris Orly
    "NCE": "FR",  # Nice
    "LYS": "FR",  # Lyon
    "FRA": "DE",  # Frankfurt
    "MUC": "DE",  # Munich
    "BER": "DE",  # Berlin Brandenburg
    "HAM": "DE",  # Hamburg
    "DUS": "DE",  # Dusseldorf
    "AMS": "NL",  # Amsterdam Schiphol
    "BRU": "BE",  # Brussels
    "ZRH": "CH",  # Zurich
    "GVA": "CH",  # Geneva
    "VIE": "AT",  # Vienna
    "MAD": "ES",  # Madrid
    "BCN": "ES",  # Barcelona
    "PMI": "ES",  # Palma de Mallorca
    "LIS": "PT",  # Lisbon
    "FCO": "IT",  # Rome Fiumicino
    "MXP": "IT",  # Milan Malpensa
    "LIN": "IT",  # Milan Linate
    "VCE": "IT",  # Venice
    "ATH": "GR",  # Athens
    "CPH": "DK",  # Copenhagen
    "ARN": "SE",  # Stockholm Arlanda
    "OSL": "NO",  # Oslo
    "HEL": "FI",  # Helsinki
    "WAW": "PL",  # Warsaw
    "PRG": "CZ",  # Prague
    "BUD": "HU",  # Budapest
    # Americas
    "JFK": "US",  # New York JFK
    "EWR": "US",  # Newark
    "LGA": "US",  # New York LaGuardia
    "LAX": "US",  # Los Angeles
    "SFO": "US",  # San Francisco
    "SEA": "US",  # Seattle
    "ORD": "US",  # Chicago O'Hare
    "ATL": "US",  # Atlanta
    "DFW": "US",  # Dallas Fort Worth
    "DEN": "US",  # Denver
    "MIA": "US",  # Miami
    "BOS": "US",  # Boston
    "IAD": "US",  # Washington Dulles
    "LAS": "US",  # Las Vegas
    "HNL": "US",  # Honolulu
    "ANC": "US",  # Anchorage
    "YYZ": "CA",  # Toronto Pearson
    "YVR": "CA",  # Vancouver
    "YUL": "CA",  # Montreal
    "MEX": "MX",  # Mexico City
    "CUN": "MX",  # Cancun
    "GRU": "BR",  # Sao Paulo Guarulhos
    "GIG": "BR",  # Rio de Janeiro
    "EZE": "AR",  # Buenos Aires Ezeiza
    "SCL": "CL",  # Santiago
    "BOG": "CO",  # Bogota
    "LIM": "PE",  # Lima
    # Africa
    "JNB": "ZA",  # Johannesburg
    "CPT": "ZA",  # Cape Town
    "CAI": "EG",  # Cairo
    "ADD": "ET",  # Addis Ababa
    "NBO": "KE",  # Nairobi
    "CMN": "MA",  # Casablanca
    "LOS": "NG",  # Lagos
}


def country_for_airport(iata_code: Optional[str]) -> Optional[str]:
    """Return the ISO 2-letter country code for an airport, if known."""
    if not iata_code:
        return None
    return AIRPORT_COUNTRIES.get(iata_code.strip().upper())
