# services/supabase_service.py
from supabase import create_client, Client
import asyncio
import os
import uuid
from typing import Dict, List, Optional, Any, AsyncIterator, Tuple
from datetime import datetime, timedelta, timezone

from utils.timezone_utils import make_legacy_id, to_storage_string

WATCH_INTERVAL_SECONDS = float(os.getenv("HISTORY_WATCH_INTERVAL", "5"))

# LIKE pattern for legacy ids such as 2024-03-02T14_30_00-000; "\_" is a literal underscore.
LEGACY_ID_LIKE = r"____-__-__T__\__\_%"


def _legacy_lower_bound(start: datetime) -> str:
    # Legacy ids only carry minutes, so round a partial minute up.
    if start.second or start.microsecond:
        start = start.replace(second=0, microsecond=0) + timedelta(minutes=1)
    return make_legacy_id(start)


class SupabaseService:
    def __init__(self):
        url = os.getenv("SUPABASE_URL")
        key = os.getenv("SUPABASE_SERVICE_KEY")

        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set in environment variables")

        self.client: Client = create_client(url, key)
        print("✅ Supabase client initialized")

    async def health_check(self) -> Dict[str, Any]:
        """Check that the measurements table is reachable"""
        try:
            self.client.table('measurements').select('id').limit(1).execute()
            return {"status": "healthy", "message": "Supabase connection OK"}
        except Exception as e:
            print(f"❌ Supabase health check failed: {e}")
            return {"status": "unhealthy", "message": str(e)}

    # Measurement Operations
    async def query_measurements(
        self,
        user_id: str,
        metric: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 10,
    ) -> List[Dict[str, Any]]:
        """
        Newest-first measurements for one user and metric within [start, end].

        Rows written before captured_at existed keep their capture time in the
        id, so they are fetched by id range in a second bounded query.
        Errors are raised, never turned into an empty list.
        """
        explicit_query = self.client.table('measurements')\
            .select('*')\
            .eq('user_id', user_id)\
            .eq('metric', metric)\
            .not_.is_('captured_at', 'null')
        if start is not None:
            explicit_query = explicit_query.gte('captured_at', to_storage_string(start))
        if end is not None:
            explicit_query = explicit_query.lte('captured_at', to_storage_string(end))
        explicit = explicit_query.order('captured_at', desc=True).limit(limit).execute()

        legacy_query = self.client.table('measurements')\
            .select('*')\
            .eq('user_id', user_id)\
            .eq('metric', metric)\
            .is_('captured_at', 'null')\
            .like('id', LEGACY_ID_LIKE)
        if start is not None:
            legacy_query = legacy_query.gte('id', _legacy_lower_bound(start))
        if end is not None:
            legacy_query = legacy_query.lte('id', make_legacy_id(end))
        legacy = legacy_query.order('id', desc=True).limit(limit).execute()

        rows = (explicit.data or []) + (legacy.data or [])

        # Rows with neither a timestamp nor a legacy id cannot match a bounded
        # range, but the unbounded view still counts them.
        if start is None and end is None:
            unresolvable = self.client.table('measurements')\
                .select('*')\
                .eq('user_id', user_id)\
                .eq('metric', metric)\
                .is_('captured_at', 'null')\
                .not_.like('id', LEGACY_ID_LIKE)\
                .order('id', desc=True)\
                .limit(limit)\
                .execute()
            rows += unresolvable.data or []

        print(f"🔍 Retrieved {len(rows)} {metric} measurements for user {user_id}")
        return rows

    async def create_measurement(
        self,
        user_id: str,
        metric: str,
        value: float,
        captured_at: datetime,
    ) -> Dict[str, Any]:
        """Insert a new measurement; rows are never updated afterwards"""
        try:
            measurement_data = {
                'id': str(uuid.uuid4()),
                'user_id': user_id,
                'metric': metric,
                'value': value,
                'captured_at': to_storage_string(captured_at),
                'recorded_at': datetime.now(timezone.utc).isoformat(),
            }
            response = self.client.table('measurements').insert(measurement_data).execute()

            if response.data:
                return response.data[0]
            else:
                raise Exception("No data returned from Supabase")
        except Exception as e:
            print(f"❌ Error creating {metric} measurement: {e}")
            raise Exception(f"Failed to create {metric} measurement: {str(e)}")

    async def get_measurement(self, user_id: str, metric: str, measurement_id: str) -> Optional[Dict[str, Any]]:
        """Get a single measurement by ID"""
        response = self.client.table('measurements')\
            .select('*')\
            .eq('user_id', user_id)\
            .eq('metric', metric)\
            .eq('id', measurement_id)\
            .limit(1)\
            .execute()

        return response.data[0] if response.data else None

    async def delete_measurement(self, user_id: str, metric: str, measurement_id: str) -> bool:
        """Delete a measurement; returns False when nothing matched"""
        try:
            response = self.client.table('measurements')\
                .delete()\
                .eq('user_id', user_id)\
                .eq('metric', metric)\
                .eq('id', measurement_id)\
                .execute()

            return bool(response.data)
        except Exception as e:
            print(f"❌ Error deleting {metric} measurement: {e}")
            raise

    async def _collection_signature(self, user_id: str, metric: str) -> Tuple[Optional[int], Optional[str]]:
        response = self.client.table('measurements')\
            .select('id', count='exact')\
            .eq('user_id', user_id)\
            .eq('metric', metric)\
            .order('recorded_at', desc=True)\
            .limit(1)\
            .execute()
        newest_id = response.data[0]['id'] if response.data else None
        return response.count, newest_id

    async def watch_measurements(
        self,
        user_id: str,
        metric: str,
        interval: Optional[float] = None,
    ) -> AsyncIterator[Tuple[Optional[int], Optional[str]]]:
        """
        Start polling the collection and return an iterator that yields
        whenever its contents change.

        The baseline signature is taken here, before the caller reads
        anything, so a write landing right after that read is still reported.
        """
        interval = WATCH_INTERVAL_SECONDS if interval is None else interval
        baseline = await self._collection_signature(user_id, metric)

        async def changes(previous):
            while True:
                await asyncio.sleep(interval)
                current = await self._collection_signature(user_id, metric)
                if current != previous:
                    print(f"🔄 {metric} measurements changed for user {user_id}")
                    previous = current
                    yield current

        return changes(baseline)

    # Calendar Operations
    async def get_calendar_events(self, user_id: str, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        """Get calendar events with timestamp in [start, end], oldest first"""
        response = self.client.table('calendar_events')\
            .select('*')\
            .eq('user_id', user_id)\
            .gte('timestamp', to_storage_string(start))\
            .lte('timestamp', to_storage_string(end))\
            .order('timestamp')\
            .execute()

        return response.data or []

    async def create_calendar_event(self, event_data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a new calendar event"""
        try:
            if 'id' not in event_data:
                event_data['id'] = str(uuid.uuid4())
            event_data['created_at'] = datetime.now(timezone.utc).isoformat()

            response = self.client.table('calendar_events').insert(event_data).execute()

            if response.data:
                return response.data[0]
            else:
                raise Exception("No data returned from Supabase")
        except Exception as e:
            print(f"❌ Error creating calendar event: {e}")
            raise Exception(f"Failed to create calendar event: {str(e)}")

    async def delete_calendar_event(self, user_id: str, event_id: str) -> bool:
        """Delete a calendar event; returns False when nothing matched"""
        response = self.client.table('calendar_events')\
            .delete()\
            .eq('user_id', user_id)\
            .eq('id', event_id)\
            .execute()

        return bool(response.data)

    # Profile Operations
    async def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Get profile by user ID"""
        response = self.client.table('profiles')\
            .select('*')\
            .eq('id', user_id)\
            .execute()

        return response.data[0] if response.data else None

    async def upsert_profile(self, user_id: str, update_data: Dict[str, Any]) -> Dict[str, Any]:
        """Merge fields into the user's profile, creating it if needed"""
        try:
            profile_data = dict(update_data)
            profile_data['id'] = user_id
            profile_data['updated_at'] = datetime.now(timezone.utc).isoformat()

            response = self.client.table('profiles')\
                .upsert(profile_data, on_conflict='id')\
                .execute()

            if response.data:
                return response.data[0]
            else:
                raise Exception("No data returned from Supabase")
        except Exception as e:
            print(f"❌ Supabase profile update error: {str(e)}")
            raise

# Global instance - we'll initialize this in main.py
supabase_service = None

def get_supabase_service() -> SupabaseService:
    """Get the global Supabase service instance"""
    global supabase_service
    if supabase_service is None:
        supabase_service = SupabaseService()
    return supabase_service

def init_supabase_service():
    """Initialize the global Supabase service"""
    global supabase_service
    supabase_service = SupabaseService()
