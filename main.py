from fastapi import FastAPI, HTTPException, UploadFile, File, Form, Depends, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from fastapi.security import HTTPAuthorizationCredentials
from collections import Counter
from datetime import date
from typing import List, Optional
import logging

from supabase import Client

from auth import AuthRedirect, get_current_user, require_admin, require_user, security, user_from_auth
from config import CORS_ORIGINS, DEFAULT_WHATSAPP_MESSAGE, LOG_LEVEL, MAX_REQUEST_IMAGES, MAX_PICKUP_DAYS_AHEAD
from database import get_supabase_client, new_supabase_client
from filters import ALL_TAB, count_by_status, filter_requests, filter_users
from links import call_link, map_link, whatsapp_link
from models import ContactSubmission, ItemCondition, Profile, RequestStatus, Role, ScrapItem, ScrapRequest, TimeSlot
from notifications import notify_status_change
from pickup import is_valid_pickup_date, price_range_for, status_label, time_slot_label
from pincode_service import lookup_pincode
from schemas import *
from storage import fetch_request_images, remove_request_images, signed_image_urls, upload_request_images

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(title="Scrap Pickup API", version="1.0.0")

# Enable CORS (so frontend can talk to backend)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

STATUS_TAB_PATTERN = "^(all|pending|scheduled|completed)$"

RECENT_LIMIT = 5

USER_REQUEST_LIST_COLUMNS = (
    "id, created_at, item_type, condition, status, estimated_price_min, "
    "estimated_price_max, pickup_date, scrap_items(name)"
)
ADMIN_REQUEST_LIST_COLUMNS = (
    "id, created_at, status, user_id, item_type, condition, pickup_date, "
    "profiles(name, phone), scrap_items(name)"
)
USER_REQUEST_DETAIL_COLUMNS = "*, scrap_items(name)"
ADMIN_REQUEST_DETAIL_COLUMNS = "*, profiles(name, email, phone), scrap_items(name)"


@app.exception_handler(AuthRedirect)
async def auth_redirect_handler(request: Request, exc: AuthRedirect):
    return RedirectResponse(exc.location, status_code=303)


def fetch_scrap_item(supabase: Client, item_id: str) -> Optional[dict]:
    response = supabase.table("scrap_items").select("*").eq("id", item_id).execute()
    return response.data[0] if response.data else None


def fetch_request_detail(supabase: Client, request_id: str, columns: str, user_id: str = None) -> Optional[dict]:
    """
    Load one request with its images and signed image URLs.
    When user_id is given the request must belong to that user.
    """
    query = supabase.table("scrap_requests").select(columns).eq("id", request_id)
    if user_id:
        query = query.eq("user_id", user_id)
    response = query.execute()

    if not response.data:
        return None

    request = response.data[0]

    return {
        **request,
        "status_label": status_label(request["status"]),
        "pickup_time_slot_label": time_slot_label(request.get("pickup_time_slot") or ""),
        "images": signed_image_urls(supabase, fetch_request_images(supabase, request_id)),
    }

# ==================== PUBLIC ENDPOINTS ====================

@app.get("/")
async def root():
    """Health check endpoint"""
    return {"message": "Scrap Pickup API is running", "version": "1.0.0"}

@app.get("/pricing")
async def get_pricing(condition: Optional[ItemCondition] = None, supabase: Client = Depends(get_supabase_client)):
    """
    Public price list, ordered by item name.
    Without a condition every item is returned with all four bounds;
    with one, each item carries the min/max for that condition.
    """
    try:
        response = supabase.table("scrap_items").select("*").order("name").execute()
        items = response.data or []

        if condition is None:
            return items

        return [
            PriceCard(id=item["id"], name=item["name"], condition=condition, **price_range_for(item, condition).model_dump())
            for item in items
        ]

    except Exception as e:
        logger.exception(f"Error fetching scrap items: {e}")
        raise HTTPException(status_code=500, detail="Failed to load pricing information. Please try again.")

@app.post("/contact", response_model=StatusResponse, status_code=201)
async def submit_contact(contact: ContactCreate, supabase: Client = Depends(get_supabase_client)):
    """
    Store a contact form submission
    """
    try:
        submission = ContactSubmission(
            name=contact.name.strip(),
            email=contact.email.lower(),
            phone=contact.phone.strip() if contact.phone else None,
            message=contact.message,
        )
        supabase.table("contact_submissions").insert(
            submission.model_dump(exclude={"id", "created_at"})
        ).execute()

        logger.info(f"Contact submission stored for {contact.email}")
        return StatusResponse(success=True, message="Message sent! We'll get back to you as soon as possible.")

    except Exception as e:
        logger.exception(f"Error submitting contact form: {e}")
        raise HTTPException(status_code=500, detail="Please try again or contact us directly.")

@app.get("/contact/links", response_model=ContactLinks)
async def get_contact_links(message: str = DEFAULT_WHATSAPP_MESSAGE):
    """WhatsApp, call and map links for the business"""
    return ContactLinks(whatsapp=whatsapp_link(message=message), call=call_link(), map=map_link())

@app.get("/pincode/{pincode}", response_model=PincodeLookup)
def get_pincode(pincode: str):
    """
    Look up city and state for the pickup address form
    """
    result = lookup_pincode(pincode)
    if not result:
        raise HTTPException(status_code=404, detail="Pincode not found")
    return result

# ==================== AUTH ENDPOINTS ====================

@app.post("/auth/signup", status_code=201)
async def signup(
    data: SignUpRequest,
    auth_client: Client = Depends(new_supabase_client),
    supabase: Client = Depends(get_supabase_client),
):
    """
    Create an account and its profile row
    """
    try:
        response = auth_client.auth.sign_up({
            "email": data.email,
            "password": data.password,
            "options": {
                "data": {"name": data.name, "phone": data.phone, "role": "user"},
            },
        })

        if not response.user:
            raise HTTPException(status_code=400, detail="Failed to create account")

        profile = Profile(id=response.user.id, name=data.name, email=data.email, phone=data.phone, role=Role.USER)
        supabase.table("profiles").upsert(profile.model_dump(mode="json", exclude={"created_at"})).execute()

        logger.info(f"Account created: {response.user.id}")
        return {
            "success": True,
            "user_id": response.user.id,
            "message": "Account created. Check your email to confirm your address.",
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"ERROR creating account: {e}")
        raise HTTPException(status_code=400, detail="Failed to create account. Please try again.")

@app.post("/auth/login", response_model=SessionResponse)
async def login(data: LoginRequest, auth_client: Client = Depends(new_supabase_client)):
    """
    Email/password sign in; returns the Supabase session tokens
    """
    try:
        response = auth_client.auth.sign_in_with_password({"email": data.email, "password": data.password})
    except Exception as e:
        logger.warning(f"Login failed for {data.email}: {e}")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not response.session or not response.user:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    current_user = user_from_auth(response.user)
    return SessionResponse(
        access_token=response.session.access_token,
        refresh_token=response.session.refresh_token,
        user_id=current_user.id,
        role=current_user.role,
    )

@app.post("/auth/logout", response_model=StatusResponse)
async def logout(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    current_user: CurrentUser = Depends(require_user),
    supabase: Client = Depends(get_supabase_client),
):
    """
    Revoke the caller's session
    """
    try:
        supabase.auth.admin.sign_out(credentials.credentials)
        return StatusResponse(success=True, message="Logged out successfully")

    except Exception as e:
        logger.exception(f"Error signing out {current_user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to sign out. Please try again.")

@app.get("/auth/me")
async def get_me(current_user: Optional[CurrentUser] = Depends(get_current_user)):
    """
    Who is calling, if anyone
    """
    if current_user is None:
        return {"authenticated": False}
    return {"authenticated": True, "user": current_user, "is_admin": current_user.is_admin}

@app.get("/login")
async def login_page(from_path: str = Query("/dashboard", alias="from")):
    """Where unauthenticated visitors are sent"""
    return {"message": "Please log in to continue", "login_endpoint": "/auth/login", "from": from_path}

# ==================== DASHBOARD ENDPOINTS ====================

@app.get("/dashboard")
async def get_dashboard(
    current_user: CurrentUser = Depends(require_user),
    supabase: Client = Depends(get_supabase_client),
):
    """
    Request counts and the five most recent requests for the caller
    """
    try:
        stats_response = supabase.table("scrap_requests").select("status").eq("user_id", current_user.id).execute()
        stats = RequestStats(**count_by_status(stats_response.data or []))

        recent_response = (
            supabase.table("scrap_requests")
            .select("id, created_at, item_type, condition, status, estimated_price_min, estimated_price_max, pickup_date")
            .eq("user_id", current_user.id)
            .order("created_at", desc=True)
            .limit(RECENT_LIMIT)
            .execute()
        )

        return {"user": current_user, "stats": stats, "recent_requests": recent_response.data or []}

    except Exception as e:
        logger.exception(f"Error fetching dashboard data: {e}")
        raise HTTPException(status_code=500, detail="Failed to load dashboard data. Please try again.")

@app.get("/dashboard/price-estimate", response_model=PriceRange)
async def get_price_estimate(
    item_id: str,
    condition: ItemCondition = ItemCondition.WORKING,
    current_user: CurrentUser = Depends(require_user),
    supabase: Client = Depends(get_supabase_client),
):
    """
    Estimated price range for a catalog item in the given condition
    """
    try:
        item = fetch_scrap_item(supabase, item_id)
        if not item:
            raise HTTPException(status_code=404, detail="Scrap item not found")
        return price_range_for(item, condition)

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error fetching price estimate: {e}")
        raise HTTPException(status_code=500, detail="Failed to load scrap items. Please try again.")

@app.post("/dashboard/requests", status_code=201)
async def create_scrap_request(
    item_id: str = Form(...),
    condition: ItemCondition = Form(ItemCondition.WORKING),
    description: Optional[str] = Form(None),
    address: str = Form(...),
    city: str = Form(...),
    state: str = Form(...),
    pincode: str = Form(...),
    pickup_date: date = Form(...),
    pickup_time_slot: TimeSlot = Form(TimeSlot.MORNING),
    images: Optional[List[UploadFile]] = File(None),
    current_user: CurrentUser = Depends(require_user),
    supabase: Client = Depends(get_supabase_client),
):
    """
    Create a pickup request and upload its photos (1-5)
    """
    if not images:
        raise HTTPException(status_code=400, detail="Please upload at least one image of your scrap item")
    if len(images) > MAX_REQUEST_IMAGES:
        raise HTTPException(status_code=400, detail=f"You can upload a maximum of {MAX_REQUEST_IMAGES} images")
    if not is_valid_pickup_date(pickup_date):
        raise HTTPException(status_code=400, detail=f"Pickup date must be within the next {MAX_PICKUP_DAYS_AHEAD} days")

    try:
        item = fetch_scrap_item(supabase, item_id)
        if not item:
            raise HTTPException(status_code=404, detail="Scrap item not found")

        # Estimate is fixed here; later catalog edits do not touch it
        estimate = price_range_for(item, condition)

        new_request = ScrapRequest(
            user_id=current_user.id,
            item_type=item_id,
            condition=condition,
            description=description,
            address=address,
            city=city,
            state=state,
            pincode=pincode,
            pickup_date=pickup_date,
            pickup_time_slot=pickup_time_slot,
            status=RequestStatus.PENDING,
            estimated_price_min=estimate.min,
            estimated_price_max=estimate.max,
        )
        response = supabase.table("scrap_requests").insert(
            new_request.model_dump(mode="json", exclude={"id", "created_at"})
        ).execute()

        if not response.data:
            raise HTTPException(status_code=400, detail="Failed to create request")

        request_id = response.data[0]["id"]
        await upload_request_images(supabase, current_user.id, request_id, images)

        logger.info(f"Scrap request {request_id} created by {current_user.id} with {len(images)} images")
        return fetch_request_detail(supabase, request_id, USER_REQUEST_DETAIL_COLUMNS, user_id=current_user.id)

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error submitting request: {e}")
        raise HTTPException(status_code=500, detail="Failed to submit your request. Please try again.")

@app.get("/dashboard/requests")
async def get_my_requests(
    q: str = "",
    status: str = Query(ALL_TAB, pattern=STATUS_TAB_PATTERN),
    current_user: CurrentUser = Depends(require_user),
    supabase: Client = Depends(get_supabase_client),
):
    """
    The caller's requests, newest first, narrowed by search text and status tab
    """
    try:
        response = (
            supabase.table("scrap_requests")
            .select(USER_REQUEST_LIST_COLUMNS)
            .eq("user_id", current_user.id)
            .order("created_at", desc=True)
            .execute()
        )
        return filter_requests(response.data or [], q, status)

    except Exception as e:
        logger.exception(f"Error fetching requests: {e}")
        raise HTTPException(status_code=500, detail="Failed to load your requests. Please try again.")

@app.get("/dashboard/requests/{request_id}")
async def get_my_request(
    request_id: str,
    current_user: CurrentUser = Depends(require_user),
    supabase: Client = Depends(get_supabase_client),
):
    """
    One of the caller's requests with signed image URLs
    """
    try:
        request = fetch_request_detail(supabase, request_id, USER_REQUEST_DETAIL_COLUMNS, user_id=current_user.id)
        if not request:
            raise HTTPException(status_code=404, detail="Request not found")
        return request

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error fetching request details: {e}")
        raise HTTPException(status_code=500, detail="Failed to load request details. Please try again.")

@app.delete("/dashboard/requests/{request_id}", response_model=StatusResponse)
async def delete_my_request(
    request_id: str,
    current_user: CurrentUser = Depends(require_user),
    supabase: Client = Depends(get_supabase_client),
):
    """
    Delete a pending request together with its photos
    """
    try:
        response = (
            supabase.table("scrap_requests")
            .select("id, status")
            .eq("id", request_id)
            .eq("user_id", current_user.id)
            .execute()
        )
        if not response.data:
            raise HTTPException(status_code=404, detail="Request not found")
        if response.data[0]["status"] != RequestStatus.PENDING.value:
            raise HTTPException(status_code=409, detail="Only pending requests can be deleted")

        remove_request_images(supabase, request_id, fetch_request_images(supabase, request_id))
        supabase.table("scrap_requests").delete().eq("id", request_id).execute()

        logger.info(f"Scrap request {request_id} deleted by {current_user.id}")
        return StatusResponse(success=True, message="Your scrap pickup request has been deleted successfully")

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error deleting request: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete request. Please try again.")

# ==================== ADMIN ENDPOINTS ====================

@app.get("/admin")
async def get_admin_dashboard(
    current_user: CurrentUser = Depends(require_admin),
    supabase: Client = Depends(get_supabase_client),
):
    """
    User and request totals plus the five most recent requests
    """
    try:
        user_response = supabase.table("profiles").select("id", count="exact").execute()
        request_response = supabase.table("scrap_requests").select("status").execute()
        counts = count_by_status(request_response.data or [])

        stats = AdminStats(
            total_users=user_response.count or 0,
            total_requests=counts["total"],
            pending_requests=counts["pending"],
            scheduled_requests=counts["scheduled"],
            completed_requests=counts["completed"],
        )

        recent_response = (
            supabase.table("scrap_requests")
            .select("id, created_at, status, user_id, profiles(name, phone), scrap_items(name)")
            .order("created_at", desc=True)
            .limit(RECENT_LIMIT)
            .execute()
        )

        return {"stats": stats, "recent_requests": recent_response.data or []}

    except Exception as e:
        logger.exception(f"Error fetching admin data: {e}")
        raise HTTPException(status_code=500, detail="Failed to load admin dashboard data")

@app.get("/admin/requests")
async def get_all_requests(
    q: str = "",
    status: str = Query(ALL_TAB, pattern=STATUS_TAB_PATTERN),
    current_user: CurrentUser = Depends(require_admin),
    supabase: Client = Depends(get_supabase_client),
):
    """
    Every request with requester and item, narrowed by search text and status tab
    """
    try:
        response = (
            supabase.table("scrap_requests")
            .select(ADMIN_REQUEST_LIST_COLUMNS)
            .order("created_at", desc=True)
            .execute()
        )
        return filter_requests(response.data or [], q, status)

    except Exception as e:
        logger.exception(f"Error fetching requests: {e}")
        raise HTTPException(status_code=500, detail="Failed to load requests. Please try again.")

@app.get("/admin/requests/{request_id}")
async def get_request_for_admin(
    request_id: str,
    current_user: CurrentUser = Depends(require_admin),
    supabase: Client = Depends(get_supabase_client),
):
    try:
        request = fetch_request_detail(supabase, request_id, ADMIN_REQUEST_DETAIL_COLUMNS)
        if not request:
            raise HTTPException(status_code=404, detail="Request not found")
        return request

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error fetching request details: {e}")
        raise HTTPException(status_code=500, detail="Failed to load request details. Please try again.")

@app.patch("/admin/requests/{request_id}/status")
async def update_request_status(
    request_id: str,
    status_update: StatusUpdate,
    current_user: CurrentUser = Depends(require_admin),
    supabase: Client = Depends(get_supabase_client),
):
    """
    Set a request's status and text the requester.
    Any of pending/scheduled/completed may be set from any other.
    """
    try:
        request = fetch_request_detail(supabase, request_id, ADMIN_REQUEST_DETAIL_COLUMNS)
        if not request:
            raise HTTPException(status_code=404, detail="Request not found")

        new_status = status_update.status.value
        if request["status"] == new_status:
            return request

        supabase.table("scrap_requests").update({"status": new_status}).eq("id", request_id).execute()
        logger.info(f"Request {request_id} status {request['status']} -> {new_status} by {current_user.id}")

        request["status"] = new_status
        request["status_label"] = status_label(new_status)

        # SMS is best effort; Twilio is a blocking call
        await run_in_threadpool(notify_status_change, request, new_status)

        return request

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error updating status: {e}")
        raise HTTPException(status_code=500, detail="Failed to update request status. Please try again.")

@app.get("/admin/pricing")
async def get_admin_pricing(
    current_user: CurrentUser = Depends(require_admin),
    supabase: Client = Depends(get_supabase_client),
):
    try:
        response = supabase.table("scrap_items").select("*").order("name").execute()
        return response.data or []

    except Exception as e:
        logger.exception(f"Error fetching scrap items: {e}")
        raise HTTPException(status_code=500, detail="Failed to load scrap items. Please try again.")

@app.put("/admin/pricing")
async def save_pricing(
    items: List[ScrapItemPrices],
    current_user: CurrentUser = Depends(require_admin),
    supabase: Client = Depends(get_supabase_client),
):
    """
    Save edited price bounds, one update per item
    """
    try:
        for item in items:
            supabase.table("scrap_items").update(
                item.model_dump(exclude={"id"})
            ).eq("id", item.id).execute()

        logger.info(f"Prices updated for {len(items)} scrap items by {current_user.id}")
        response = supabase.table("scrap_items").select("*").order("name").execute()
        return response.data or []

    except Exception as e:
        logger.exception(f"Error updating prices: {e}")
        raise HTTPException(status_code=500, detail="Failed to update prices. Please try again.")

@app.post("/admin/pricing", status_code=201)
async def add_scrap_item(
    item: ScrapItemCreate,
    current_user: CurrentUser = Depends(require_admin),
    supabase: Client = Depends(get_supabase_client),
):
    """
    Add a catalog item
    """
    try:
        response = supabase.table("scrap_items").insert(
            ScrapItem(**item.model_dump()).model_dump(exclude={"id"})
        ).execute()

        if not response.data:
            raise HTTPException(status_code=400, detail="Failed to add new item")

        logger.info(f"Scrap item added: {item.name}")
        return response.data[0]

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error adding new item: {e}")
        raise HTTPException(status_code=500, detail="Failed to add new item. Please try again.")

@app.get("/admin/users")
async def get_users(
    q: str = "",
    current_user: CurrentUser = Depends(require_admin),
    supabase: Client = Depends(get_supabase_client),
):
    """
    Registered users, newest first, with how many requests each has made
    """
    try:
        response = (
            supabase.table("profiles")
            .select("id, name, email, phone, created_at")
            .order("created_at", desc=True)
            .execute()
        )
        request_response = supabase.table("scrap_requests").select("user_id").execute()
        request_counts = Counter(row["user_id"] for row in request_response.data or [])

        users = [
            {**user, "request_count": request_counts.get(user["id"], 0)}
            for user in response.data or []
        ]
        return filter_users(users, q)

    except Exception as e:
        logger.exception(f"Error fetching users: {e}")
        raise HTTPException(status_code=500, detail="Failed to load users. Please try again.")

# ==================== RUN THE APP ====================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
